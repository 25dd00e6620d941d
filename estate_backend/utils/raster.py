"""Pillow-backed raster codec used by the image compression service.

Both functions are blocking and operate on their own image objects, so they can
be called from several worker threads at once.
"""

from __future__ import annotations

import io

from PIL import Image

_PIL_FORMATS = {"jpeg": "JPEG", "webp": "WEBP", "png": "PNG"}


class ImageCompressionError(Exception):
    """Base class for failures of the image compression engine."""


class InvalidImageInput(ImageCompressionError):
    """The input is not an image or asks for an unsupported output format."""


class ImageDecodeError(ImageCompressionError):
    pass


class ImageEncodeError(ImageCompressionError):
    pass


def decode(data: bytes) -> Image.Image:
    """Decode ``data`` into a fully loaded image."""

    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError(f"Failed to load image: {exc}") from exc
    return image


def _resample_mode(image: Image.Image) -> Image.Image:
    # Pillow falls back to nearest-neighbour for palette and bilevel images.
    if image.mode in ("P", "PA"):
        has_alpha = image.mode == "PA" or "transparency" in image.info
        return image.convert("RGBA" if has_alpha else "RGB")
    if image.mode == "1":
        return image.convert("L")
    return image


def _prepare_mode(image: Image.Image, fmt: str) -> Image.Image:
    has_alpha = "A" in image.mode or "transparency" in image.info
    if fmt == "jpeg" and image.mode not in ("RGB", "L"):
        return image.convert("RGB")
    if fmt == "webp" and image.mode not in ("RGB", "RGBA"):
        return image.convert("RGBA" if has_alpha else "RGB")
    if fmt == "png" and image.mode == "CMYK":
        return image.convert("RGB")
    return image


def encode(image: Image.Image, width: int, height: int, fmt: str, quality: float) -> bytes:
    """Resample ``image`` to ``width`` x ``height`` and encode it as ``fmt``.

    ``quality`` is on the 0-1 scale and is ignored for PNG, which is lossless.
    """

    if fmt not in _PIL_FORMATS:
        raise InvalidImageInput(f"Unsupported output format: {fmt}")

    params = {"optimize": True}
    if fmt in ("jpeg", "webp"):
        params["quality"] = max(1, min(100, int(round(quality * 100))))

    surface = image
    buffer = io.BytesIO()
    try:
        if surface.size != (width, height):
            surface = _resample_mode(surface)
            surface = surface.resize((width, height), Image.Resampling.LANCZOS)
        surface = _prepare_mode(surface, fmt)
        surface.save(buffer, format=_PIL_FORMATS[fmt], **params)
    except (OSError, ValueError, KeyError) as exc:
        raise ImageEncodeError(f"Failed to compress image: {exc}") from exc
    data = buffer.getvalue()
    if not data:
        raise ImageEncodeError("Failed to compress image: encoder produced no data")
    return data


__all__ = [
    "ImageCompressionError",
    "InvalidImageInput",
    "ImageDecodeError",
    "ImageEncodeError",
    "decode",
    "encode",
]
