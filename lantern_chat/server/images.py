"""Image upload and retrieval routes."""
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import PlainTextResponse
from starlette.datastructures import UploadFile

from .auth import get_current_session_id, get_relay
from .blobs import sniff_content_type
from .errors import ImageTooLargeError, ResourceError
from .logging_config import configure_logging
from .relay import Relay

router = APIRouter(tags=["images"])
logger = configure_logging()


async def _read_upload(request: Request, limit: int) -> bytes:
    try:
        form = await request.form(max_files=1)
    except Exception as exc:  # noqa: BLE001
        logger.info("UPLOAD_REJECTED reason=bad_form error=%s", exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Could not parse multipart form")

    try:
        upload = form.get("image")
        if not isinstance(upload, UploadFile):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid image")
        # one byte past the limit is enough to tell an oversized upload
        return await upload.read(limit + 1)
    except OSError as exc:
        raise ResourceError("Error reading image") from exc
    finally:
        await form.close()


@router.post("/upload-image", response_class=PlainTextResponse)
async def upload_image(
    request: Request,
    relay: Relay = Depends(get_relay),
    session_id: str = Depends(get_current_session_id),
):
    try:
        data = await _read_upload(request, relay.max_image_bytes)
    except ResourceError as exc:
        logger.error("UPLOAD_FAILED session_id=%s error=%s", session_id, exc.__cause__)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    try:
        relay.upload_image(session_id, data)
    except ImageTooLargeError as exc:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(exc))
    return "Image uploaded"


@router.get("/image/{blob_id}")
async def get_image(blob_id: str, relay: Relay = Depends(get_relay)):
    data = relay.get_image(blob_id)
    if data is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")
    return Response(content=data, media_type=sniff_content_type(data))
