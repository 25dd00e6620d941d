import asyncio
import io
import os

import pytest
from PIL import Image

from estate_backend.models.image import CompressionOptions, ImageFile
from estate_backend.services import image_compression
from estate_backend.services.image_compression import (
    ImageDecodeError,
    ImageEncodeError,
    InvalidImageInput,
    calculate_dimensions,
    compress_image,
    compress_images,
    create_responsive_image_set,
    generate_compressed_file_name,
    generate_image_variants,
    get_image_dimensions,
    is_valid_image_type,
    optimize_for_web,
    smart_compress,
)
from estate_backend.utils import raster
from estate_backend.utils.formatting import format_file_size


def _image_file(width: int, height: int, name: str = "photo.png", noise: bool = False, padding: int = 0) -> ImageFile:
    if noise:
        image = Image.frombytes("RGB", (width, height), os.urandom(width * height * 3))
    else:
        image = Image.new("RGB", (width, height), (180, 40, 40))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return ImageFile(data=buffer.getvalue() + b"\0" * padding, name=name, mime_type="image/png")


def _record_encodes(monkeypatch) -> list:
    calls = []
    original = raster.encode

    def recording_encode(image, width, height, fmt, quality):
        calls.append((width, height, fmt, quality))
        return original(image, width, height, fmt, quality)

    monkeypatch.setattr(raster, "encode", recording_encode)
    return calls


def test_fit_never_upscales():
    assert calculate_dimensions(800, 600, 1920, 1080).model_dump() == {"width": 800, "height": 600}


def test_fit_scales_by_most_constrained_axis():
    assert calculate_dimensions(4000, 3000, 1920, 1080).model_dump() == {"width": 1440, "height": 1080}
    assert calculate_dimensions(3000, 1000, 1920, 1080).model_dump() == {"width": 1920, "height": 640}


def test_fit_without_aspect_clamps_each_axis():
    assert calculate_dimensions(4000, 500, 1920, 1080, False).model_dump() == {"width": 1920, "height": 500}


def test_compress_small_image_keeps_dimensions():
    result = asyncio.run(compress_image(_image_file(200, 100)))
    assert result.dimensions.model_dump() == {"width": 200, "height": 100}
    assert result.file.mime_type == "image/jpeg"
    assert result.file.name.startswith("photo_compressed_")
    assert result.file.name.endswith(".jpeg")
    assert result.compressed_size == len(result.file.data)
    with Image.open(io.BytesIO(result.file.data)) as decoded:
        assert decoded.format == "JPEG"
        assert decoded.size == (200, 100)


def test_compress_resizes_to_bounds():
    options = CompressionOptions(max_width=100, max_height=100, quality=0.7, format="webp")
    result = asyncio.run(compress_image(_image_file(400, 200), options))
    assert result.dimensions.model_dump() == {"width": 100, "height": 50}
    assert result.file.mime_type == "image/webp"


def test_compression_ratio_can_be_negative():
    source = _image_file(16, 16)
    options = CompressionOptions(quality=1.0, format="jpeg")
    result = asyncio.run(compress_image(source, options))
    assert result.compressed_size > result.original_size
    assert result.compression_ratio < 0
    expected = (result.original_size - result.compressed_size) / result.original_size * 100
    assert result.compression_ratio == pytest.approx(expected)


def test_non_image_input_rejected():
    document = ImageFile(data=b"%PDF-1.4", name="brochure.pdf", mime_type="application/pdf")
    with pytest.raises(InvalidImageInput):
        asyncio.run(compress_image(document))


def test_undecodable_bytes_raise_decode_error():
    broken = ImageFile(data=b"not really a png", name="broken.png", mime_type="image/png")
    with pytest.raises(ImageDecodeError):
        asyncio.run(compress_image(broken))


def test_generate_variants_returns_all_presets():
    variants = asyncio.run(generate_image_variants(_image_file(1000, 1000)))
    assert set(variants) == {"thumbnail", "medium", "large"}
    assert variants["thumbnail"].dimensions.model_dump() == {"width": 300, "height": 300}
    assert variants["medium"].dimensions.model_dump() == {"width": 600, "height": 600}
    assert variants["large"].dimensions.model_dump() == {"width": 1000, "height": 1000}


def test_variant_failure_fails_whole_call(monkeypatch):
    original = raster.encode

    def flaky_encode(image, width, height, fmt, quality):
        if width == 300:
            raise ImageEncodeError("Failed to compress image")
        return original(image, width, height, fmt, quality)

    monkeypatch.setattr(raster, "encode", flaky_encode)
    with pytest.raises(ImageEncodeError):
        asyncio.run(generate_image_variants(_image_file(1000, 1000)))


def test_batch_keeps_going_after_a_failure():
    good = _image_file(50, 50, name="good.png")
    bad = ImageFile(data=b"junk", name="bad.png", mime_type="image/png")
    items = asyncio.run(compress_images([good, bad]))
    assert [item.source_name for item in items] == ["good.png", "bad.png"]
    assert items[0].ok and items[0].result.dimensions.width == 50
    assert not items[1].ok
    assert "Failed to load image" in items[1].error


def test_smart_compress_large_source_uses_large_preset(monkeypatch):
    calls = _record_encodes(monkeypatch)
    result = asyncio.run(smart_compress(_image_file(2400, 1200)))
    assert result.dimensions.model_dump() == {"width": 1920, "height": 960}
    assert calls == [(1920, 960, "jpeg", 0.9)]


def test_smart_compress_small_source_bumps_quality(monkeypatch):
    calls = _record_encodes(monkeypatch)
    asyncio.run(smart_compress(_image_file(400, 300)))
    assert calls == [(400, 300, "jpeg", 0.9)]


def test_smart_compress_mid_source_uses_medium(monkeypatch):
    calls = _record_encodes(monkeypatch)
    asyncio.run(smart_compress(_image_file(1000, 700)))
    assert calls[0][2:] == ("jpeg", 0.85)


def test_smart_compress_heavy_source_lowers_quality(monkeypatch):
    calls = _record_encodes(monkeypatch)
    heavy = _image_file(1000, 700, padding=6 * 1024 * 1024)
    asyncio.run(smart_compress(heavy))
    assert calls[0][3] == pytest.approx(0.75)


def test_responsive_set_adds_original_for_big_sources():
    images = asyncio.run(create_responsive_image_set(_image_file(1600, 1000)))
    assert set(images) == {"small", "medium", "large", "original"}
    assert images["small"].dimensions.model_dump() == {"width": 480, "height": 300}
    assert images["large"].dimensions.model_dump() == {"width": 1200, "height": 750}
    assert images["original"].dimensions.model_dump() == {"width": 1600, "height": 1000}
    assert images["original"].file.mime_type == "image/webp"


def test_responsive_set_skips_original_for_modest_sources():
    images = asyncio.run(create_responsive_image_set(_image_file(1000, 600)))
    assert set(images) == {"small", "medium", "large"}


def test_optimize_for_web_retries_toward_target(monkeypatch):
    calls = _record_encodes(monkeypatch)
    result = asyncio.run(optimize_for_web(_image_file(300, 200, noise=True), target_size=1000))
    assert calls[0][2:] == ("webp", 0.85)
    assert calls[1][2:] == ("webp", 0.6)
    assert result.dimensions.model_dump() == {"width": 300, "height": 200}
    assert result.file.mime_type in {"image/webp", "image/jpeg"}


def test_optimize_for_web_bounds_dimensions():
    result = asyncio.run(optimize_for_web(_image_file(2400, 1200)))
    assert result.dimensions.width <= 1920
    assert result.dimensions.height <= 1080


def test_get_image_dimensions():
    dims = asyncio.run(get_image_dimensions(_image_file(321, 123)))
    assert (dims.width, dims.height) == (321, 123)


def test_image_type_and_name_helpers():
    assert is_valid_image_type(_image_file(4, 4))
    assert not is_valid_image_type(ImageFile(data=b"", name="x.svg", mime_type="image/svg+xml"))
    name = generate_compressed_file_name("living.room.png", "webp")
    assert name.startswith("living.room_compressed_")
    assert name.endswith(".webp")


def test_format_file_size():
    assert format_file_size(0) == "0 Bytes"
    assert format_file_size(512) == "512 Bytes"
    assert format_file_size(1536) == "1.5 KB"
    assert format_file_size(1024 * 1024) == "1 MB"
    assert format_file_size(3 * 1024 ** 3) == "3 GB"


def test_engine_exports_codec_errors():
    assert image_compression.ImageEncodeError is raster.ImageEncodeError


def _palette_checkerboard(size: int) -> ImageFile:
    image = Image.new("P", (size, size))
    image.putpalette([0, 0, 0, 255, 255, 255])
    image.putdata([(x + y) % 2 for y in range(size) for x in range(size)])
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return ImageFile(data=buffer.getvalue(), name="plan.png", mime_type="image/png")


def test_palette_images_are_smoothly_resampled():
    source = _palette_checkerboard(200)
    with Image.open(io.BytesIO(source.data)) as decoded:
        assert decoded.mode == "P"

    options = CompressionOptions(max_width=100, max_height=100, format="png")
    result = asyncio.run(compress_image(source, options))
    assert result.dimensions.model_dump() == {"width": 100, "height": 100}
    with Image.open(io.BytesIO(result.file.data)) as decoded:
        greys = set(decoded.convert("L").getdata())
    assert any(0 < value < 255 for value in greys)
