"""Image compression: aspect-aware resizing, re-encoding and adaptive presets.

Decoding and encoding run in worker threads; they are the only points where a
compression yields. Multi-variant helpers fan out with :func:`asyncio.gather`
and fail as a whole when any variant fails.
"""

from __future__ import annotations

import asyncio
import re
import time
from typing import Dict, List, Mapping, Optional, Sequence

from ..models.image import (
    COMPRESSION_PRESETS,
    DEFAULT_COMPRESSION_OPTIONS,
    RESPONSIVE_SIZES,
    BatchCompressionItem,
    CompressionOptions,
    CompressionResult,
    Dimensions,
    ImageFile,
)
from ..utils import raster
from ..utils.formatting import format_file_size
from ..utils.logging import get_logger
from ..utils.raster import ImageCompressionError, ImageDecodeError, ImageEncodeError, InvalidImageInput

LOGGER = get_logger("services.image_compression")

SUPPORTED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")

LARGE_SOURCE_PX = 2000
SMALL_SOURCE = (800, 600)
HEAVY_SOURCE_BYTES = 5 * 1024 * 1024
WEB_MAX = (1920, 1080)
RESPONSIVE_ORIGINAL_THRESHOLD = (1400, 900)


def calculate_dimensions(
    original_width: int,
    original_height: int,
    max_width: int,
    max_height: int,
    maintain_aspect_ratio: bool = True,
) -> Dimensions:
    """Fit an image inside ``max_width`` x ``max_height`` without upscaling."""

    if not maintain_aspect_ratio:
        return Dimensions(width=min(original_width, max_width), height=min(original_height, max_height))

    if original_width <= max_width and original_height <= max_height:
        return Dimensions(width=original_width, height=original_height)

    scale = min(max_width / original_width, max_height / original_height)
    return Dimensions(
        width=max(1, round(original_width * scale)),
        height=max(1, round(original_height * scale)),
    )


def generate_compressed_file_name(original_name: str, fmt: str) -> str:
    stem = re.sub(r"\.[^/.]+$", "", original_name)
    return f"{stem}_compressed_{int(time.time() * 1000)}.{fmt}"


def is_valid_image_type(file: ImageFile) -> bool:
    return file.mime_type in SUPPORTED_IMAGE_TYPES


async def get_image_dimensions(file: ImageFile) -> Dimensions:
    image = await asyncio.to_thread(raster.decode, file.data)
    return Dimensions(width=image.width, height=image.height)


async def compress_image(file: ImageFile, options: Optional[CompressionOptions] = None) -> CompressionResult:
    """Resize and re-encode a single image.

    Raises :class:`InvalidImageInput` for non-image input and propagates
    :class:`ImageDecodeError` / :class:`ImageEncodeError` from the codec.
    """

    opts = options or DEFAULT_COMPRESSION_OPTIONS
    if not file.mime_type.startswith("image/"):
        raise InvalidImageInput(f"Invalid file: {file.name} is not an image ({file.mime_type})")

    image = await asyncio.to_thread(raster.decode, file.data)
    target = calculate_dimensions(
        image.width, image.height, opts.max_width, opts.max_height, opts.maintain_aspect_ratio
    )
    data = await asyncio.to_thread(raster.encode, image, target.width, target.height, opts.format, opts.quality)

    compressed = ImageFile(
        data=data,
        name=generate_compressed_file_name(file.name, opts.format),
        mime_type=f"image/{opts.format}",
    )
    original_size = file.size
    compressed_size = compressed.size
    ratio = (original_size - compressed_size) / original_size * 100
    LOGGER.debug(
        "image_compressed name=%s format=%s size=%dx%d original=%s compressed=%s ratio=%.1f",
        file.name,
        opts.format,
        target.width,
        target.height,
        format_file_size(original_size),
        format_file_size(compressed_size),
        ratio,
    )
    return CompressionResult(
        file=compressed,
        original_size=original_size,
        compressed_size=compressed_size,
        compression_ratio=ratio,
        dimensions=target,
    )


async def compress_images(
    files: Sequence[ImageFile], options: Optional[CompressionOptions] = None
) -> List[BatchCompressionItem]:
    """Compress several images concurrently; one failure does not stop the others."""

    outcomes = await asyncio.gather(*(compress_image(f, options) for f in files), return_exceptions=True)
    items: List[BatchCompressionItem] = []
    for file, outcome in zip(files, outcomes):
        if isinstance(outcome, ImageCompressionError):
            LOGGER.warning("image_batch_failed name=%s error=%s", file.name, outcome)
            items.append(BatchCompressionItem(source_name=file.name, error=str(outcome)))
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            items.append(BatchCompressionItem(source_name=file.name, result=outcome))
    return items


async def _compress_all(file: ImageFile, variants: Mapping[str, CompressionOptions]) -> Dict[str, CompressionResult]:
    names = list(variants)
    results = await asyncio.gather(*(compress_image(file, variants[name]) for name in names))
    return dict(zip(names, results))


async def generate_image_variants(file: ImageFile) -> Dict[str, CompressionResult]:
    """Thumbnail, medium and large renditions of one image."""
    return await _compress_all(
        file,
        {name: COMPRESSION_PRESETS[name] for name in ("thumbnail", "medium", "large")},
    )


async def smart_compress(file: ImageFile) -> CompressionResult:
    """Pick a preset from the source dimensions and byte size, then compress."""

    dims = await get_image_dimensions(file)
    if dims.width > LARGE_SOURCE_PX or dims.height > LARGE_SOURCE_PX:
        preset = COMPRESSION_PRESETS["large"]
    elif dims.width < SMALL_SOURCE[0] and dims.height < SMALL_SOURCE[1]:
        preset = COMPRESSION_PRESETS["medium"].model_copy(update={"quality": 0.9})
    else:
        preset = COMPRESSION_PRESETS["medium"]

    if file.size > HEAVY_SOURCE_BYTES:
        preset = preset.model_copy(update={"quality": max(0.7, preset.quality - 0.1)})

    return await compress_image(file, preset)


async def create_responsive_image_set(file: ImageFile) -> Dict[str, CompressionResult]:
    """Small, medium and large breakpoints, plus a re-encoded ``original`` for big sources.

    The ``original`` variant keeps the source dimensions and is only produced
    when the source exceeds 1400x900.
    """

    dims = await get_image_dimensions(file)
    variants: Dict[str, CompressionOptions] = dict(RESPONSIVE_SIZES)
    if dims.width > RESPONSIVE_ORIGINAL_THRESHOLD[0] or dims.height > RESPONSIVE_ORIGINAL_THRESHOLD[1]:
        variants["original"] = CompressionOptions(
            max_width=dims.width, max_height=dims.height, quality=0.95, format="webp"
        )
    return await _compress_all(file, variants)


async def optimize_for_web(file: ImageFile, target_size: Optional[int] = None) -> CompressionResult:
    """WebP first, tightened toward ``target_size``, with a JPEG fallback when WebP saves little."""

    dims = await get_image_dimensions(file)
    bounds = {"max_width": min(dims.width, WEB_MAX[0]), "max_height": min(dims.height, WEB_MAX[1])}

    result = await compress_image(file, CompressionOptions(**bounds, quality=0.85, format="webp"))

    if target_size and result.compressed_size > target_size:
        reduction = max(0.1, target_size / result.compressed_size)
        quality = max(0.6, 0.85 * reduction)
        result = await compress_image(file, CompressionOptions(**bounds, quality=quality, format="webp"))

    if result.compression_ratio < 30:
        jpeg = await compress_image(file, CompressionOptions(**bounds, quality=0.8, format="jpeg"))
        if jpeg.compressed_size < result.compressed_size:
            result = jpeg

    return result


__all__ = [
    "ImageCompressionError",
    "InvalidImageInput",
    "ImageDecodeError",
    "ImageEncodeError",
    "SUPPORTED_IMAGE_TYPES",
    "calculate_dimensions",
    "generate_compressed_file_name",
    "is_valid_image_type",
    "get_image_dimensions",
    "compress_image",
    "compress_images",
    "generate_image_variants",
    "smart_compress",
    "create_responsive_image_set",
    "optimize_for_web",
]
