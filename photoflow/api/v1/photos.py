"""Photo upload, polling, override and delete endpoints.

Endpoints, with records serialized by ``Item.to_wire``:
  POST   /photos                 — multipart upload, one or more ``file`` parts
  GET    /photos                 — list, optional ``?status=`` filter
  GET    /photos/{id}            — one record
  GET    /photos/{id}/image      — raw image bytes
  PATCH  /photos/{id}/status     — force a state
  DELETE /photos/{id}            — remove record, payload and timers
"""

import logging
import os
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, HTTPException, Request, Response, UploadFile
from pydantic import BaseModel

from photoflow.items.errors import InvalidInput, ItemNotFound, PayloadTooLarge
from photoflow.items.models import ItemState
from photoflow.items.service import ItemService

logger = logging.getLogger(__name__)

router = APIRouter()

# Maps a label's extension to the media type it is served with
_MEDIA_TYPES = {
    ".png":  "image/png",
    ".gif":  "image/gif",
    ".webp": "image/webp",
}
_DEFAULT_MEDIA_TYPE = "image/jpeg"

_CHUNK_BYTES = 1024 * 1024


def get_service(request: Request) -> ItemService:
    """Access layer built in create_app and stored on app.state."""
    return request.app.state.service


class StatusUpdateRequest(BaseModel):
    status: ItemState


# ---------------------------------------------------------------------------
# POST /photos
# ---------------------------------------------------------------------------

@router.post("/photos", status_code=201)
async def upload_photos(
    file: Optional[List[UploadFile]] = File(None),
    service: ItemService = Depends(get_service),
):
    """Accept one or more image uploads and create an UPLOADED item for each.

    Non-image and empty parts are skipped. Returns the created records, or
    400 when no part (or none at all) produced one.
    """
    file = file or []
    uploads = []
    skipped = 0
    batch_total = 0

    for upload in file:
        try:
            if not is_image_content_type(upload.content_type):
                logger.warning(
                    "Skipping non-image file: %s (%s)", upload.filename, upload.content_type
                )
                skipped += 1
                continue

            data = await _read_limited(upload, service.max_payload_bytes)
            batch_total += len(data)
            if batch_total > service.max_batch_bytes:
                raise HTTPException(
                    status_code=413,
                    detail=f"Upload too large (max {service.max_batch_bytes} bytes per batch)",
                )
            uploads.append((upload.filename, data))
        finally:
            await upload.close()

    try:
        result = service.create_batch(uploads, skipped=skipped)
    except PayloadTooLarge as exc:
        raise HTTPException(status_code=413, detail=str(exc))
    except InvalidInput as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return [item.to_wire() for item in result.created]


# ---------------------------------------------------------------------------
# GET /photos, GET /photos/{id}, GET /photos/{id}/image
# ---------------------------------------------------------------------------

@router.get("/photos")
async def list_photos(
    status: Optional[ItemState] = None,
    service: ItemService = Depends(get_service),
):
    items = service.list() if status is None else service.list_by_state(status)
    return [item.to_wire() for item in items]


@router.get("/photos/{item_id}")
async def get_photo(item_id: str, service: ItemService = Depends(get_service)):
    try:
        return service.get(item_id).to_wire()
    except ItemNotFound:
        raise HTTPException(status_code=404, detail="Photo not found")


@router.get("/photos/{item_id}/image")
async def get_photo_image(item_id: str, service: ItemService = Depends(get_service)):
    """Stream the stored bytes back with a type guessed from the label."""
    try:
        item = service.get(item_id)
        payload = service.get_payload(item_id)
    except ItemNotFound:
        raise HTTPException(status_code=404, detail="Photo not found")

    return Response(
        content=payload,
        media_type=media_type_for(item.label),
        headers={"Content-Disposition": content_disposition(item.label)},
    )


# ---------------------------------------------------------------------------
# PATCH /photos/{id}/status, DELETE /photos/{id}
# ---------------------------------------------------------------------------

@router.patch("/photos/{item_id}/status")
async def set_photo_status(
    item_id: str,
    request: StatusUpdateRequest,
    service: ItemService = Depends(get_service),
):
    try:
        return service.set_state(item_id, request.status).to_wire()
    except ItemNotFound:
        raise HTTPException(status_code=404, detail="Photo not found")


@router.delete("/photos/{item_id}", status_code=204)
async def delete_photo(item_id: str, service: ItemService = Depends(get_service)):
    try:
        service.delete(item_id)
    except ItemNotFound:
        raise HTTPException(status_code=404, detail="Photo not found")
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def is_image_content_type(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.startswith("image/")


def media_type_for(label: str) -> str:
    ext = os.path.splitext(label.lower())[1]
    return _MEDIA_TYPES.get(ext, _DEFAULT_MEDIA_TYPE)


def content_disposition(label: str) -> str:
    """Inline disposition with an ASCII fallback name and a UTF-8 ``filename*``."""
    fallback = "".join(
        ch if 32 <= ord(ch) < 127 and ch not in '"\\' else "_" for ch in label
    )
    return f"inline; filename=\"{fallback}\"; filename*=UTF-8''{quote(label, safe='')}"


async def _read_limited(upload: UploadFile, limit: int) -> bytes:
    """Read an upload in 1 MB chunks, failing fast once it passes ``limit``."""
    chunks = []
    total = 0
    while True:
        chunk = await upload.read(_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            raise HTTPException(
                status_code=413,
                detail=f"File too large: {upload.filename} (max {limit} bytes)",
            )
        chunks.append(chunk)
    return b"".join(chunks)
