from typing import Any, Dict, Literal

from fastapi import APIRouter, Body, FastAPI, HTTPException, Query, Request, Response

from .config import settings
from .db.repo import get_repository
from .models.image import COMPRESSION_PRESETS, CompressionResult, ImageFile
from .models.validation import ValidationOptions
from .services.image_compression import (
    ImageDecodeError,
    ImageEncodeError,
    InvalidImageInput,
    compress_image,
    is_valid_image_type,
    smart_compress,
)
from .services.import_export import (
    export_properties_to_csv,
    generate_import_template,
    parse_csv_to_properties,
)
from .services.validation import validate_for_operation
from .utils.logging import get_logger

LOGGER = get_logger("api")

app = FastAPI(title="Estate Backend")
router = APIRouter(prefix="/api")


def _csv_response(text: str, filename: str) -> Response:
    return Response(
        content=text.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


async def _read_image(request: Request, filename: str) -> ImageFile:
    data = await request.body()
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(413, detail=f"image exceeds {settings.MAX_UPLOAD_BYTES} bytes")
    mime_type = request.headers.get("content-type", "").split(";")[0].strip()
    image = ImageFile(data=data, name=filename, mime_type=mime_type)
    if not is_valid_image_type(image):
        raise HTTPException(415, detail=f"unsupported image type: {mime_type or 'unknown'}")
    return image


def _image_response(result: CompressionResult) -> Response:
    return Response(
        content=result.file.data,
        media_type=result.file.mime_type,
        headers={
            "Content-Disposition": f'inline; filename="{result.file.name}"',
            "X-Original-Size": str(result.original_size),
            "X-Compressed-Size": str(result.compressed_size),
            "X-Compression-Ratio": f"{result.compression_ratio:.2f}",
            "X-Width": str(result.dimensions.width),
            "X-Height": str(result.dimensions.height),
        },
    )


async def _run_compression(coro) -> CompressionResult:
    try:
        return await coro
    except InvalidImageInput as exc:
        raise HTTPException(415, detail=str(exc))
    except ImageDecodeError as exc:
        LOGGER.warning("image_decode_failed error=%s", exc)
        raise HTTPException(422, detail=str(exc))
    except ImageEncodeError as exc:
        LOGGER.error("image_encode_failed error=%s", exc)
        raise HTTPException(500, detail=str(exc))


@router.get("/health")
def health(): return {"status":"ok"}


@router.get("/agents")
def list_agents():
    return [agent.model_dump() for agent in get_repository().list_agents()]


@router.get("/properties/export")
def export_properties():
    repo = get_repository()
    text = export_properties_to_csv(repo.list_properties(), repo.list_agents())
    return _csv_response(text, settings.EXPORT_FILENAME)


@router.get("/properties/template")
def import_template():
    text = generate_import_template(get_repository().list_agents())
    return _csv_response(text, "property-import-template.csv")


@router.post("/properties/import")
async def import_properties(request: Request, commit: bool = Query(False)):
    raw = await request.body()
    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(400, detail="import file must be UTF-8 text")
    repo = get_repository()
    options = ValidationOptions.from_settings()
    result = parse_csv_to_properties(content, repo.list_agents(), options)
    payload = result.model_dump()
    if commit and result.valid_properties:
        created = repo.add_imported(result.valid_properties)
        payload["created_ids"] = [prop.id for prop in created]
    return payload


@router.post("/properties/validate")
def validate_payload(
    record: Dict[str, Any] = Body(...),
    operation: Literal["create", "update", "delete"] = Query("create"),
):
    options = ValidationOptions.from_settings(agent_ids=get_repository().agent_ids())
    return validate_for_operation(record, operation, options).to_dict()


@router.post("/images/compress")
async def compress_upload(
    request: Request,
    preset: str = Query("large"),
    filename: str = Query("upload"),
):
    options = COMPRESSION_PRESETS.get(preset)
    if options is None:
        raise HTTPException(404, detail=f"unknown preset '{preset}'")
    image = await _read_image(request, filename)
    result = await _run_compression(compress_image(image, options))
    return _image_response(result)


@router.post("/images/smart")
async def smart_compress_upload(request: Request, filename: str = Query("upload")):
    image = await _read_image(request, filename)
    result = await _run_compression(smart_compress(image))
    return _image_response(result)


app.include_router(router)
