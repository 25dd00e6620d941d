"""Pydantic models for the image compression engine."""

from __future__ import annotations

from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field

ImageFormat = Literal["jpeg", "webp", "png"]


class ImageFile(BaseModel):
    """Raw image bytes together with the name and mime type they arrived with."""

    data: bytes
    name: str
    mime_type: str

    model_config = {"frozen": True}

    @property
    def size(self) -> int:
        return len(self.data)


class Dimensions(BaseModel):
    width: int
    height: int


class CompressionOptions(BaseModel):
    max_width: int = Field(1920, gt=0)
    max_height: int = Field(1080, gt=0)
    quality: float = Field(0.85, ge=0.1, le=1.0)
    format: ImageFormat = "jpeg"
    maintain_aspect_ratio: bool = True

    model_config = {"frozen": True}


class CompressionResult(BaseModel):
    file: ImageFile
    original_size: int
    compressed_size: int
    compression_ratio: float
    dimensions: Dimensions


class BatchCompressionItem(BaseModel):
    """Outcome of one file in a batch; exactly one of ``result``/``error`` is set."""

    source_name: str
    result: Optional[CompressionResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


DEFAULT_COMPRESSION_OPTIONS = CompressionOptions()

COMPRESSION_PRESETS: Dict[str, CompressionOptions] = {
    "thumbnail": CompressionOptions(max_width=300, max_height=300, quality=0.8, format="jpeg"),
    "medium": CompressionOptions(max_width=800, max_height=600, quality=0.85, format="jpeg"),
    "large": CompressionOptions(max_width=1920, max_height=1080, quality=0.9, format="jpeg"),
    "highQuality": CompressionOptions(max_width=2560, max_height=1440, quality=0.95, format="webp"),
}

# Breakpoints used by the responsive image set.
RESPONSIVE_SIZES: Dict[str, CompressionOptions] = {
    "small": CompressionOptions(max_width=480, max_height=320, quality=0.8, format="jpeg"),
    "medium": CompressionOptions(max_width=768, max_height=512, quality=0.85, format="jpeg"),
    "large": CompressionOptions(max_width=1200, max_height=800, quality=0.9, format="jpeg"),
}


__all__ = [
    "ImageFormat",
    "ImageFile",
    "Dimensions",
    "CompressionOptions",
    "CompressionResult",
    "BatchCompressionItem",
    "DEFAULT_COMPRESSION_OPTIONS",
    "COMPRESSION_PRESETS",
    "RESPONSIVE_SIZES",
]
