"""GET /api/files/{path}: serves images written by LocalFileStorage."""

import mimetypes

from fastapi import APIRouter
from fastapi.responses import FileResponse

from tripmatch.exceptions import FileStorageError, NotFoundError, ValidationError
from tripmatch.services.file_service import file_service
from tripmatch.services.storage import LocalFileStorage

router = APIRouter(prefix="/api", tags=["Files"])


@router.get(
    "/files/{file_path:path}",
    summary="Serve an uploaded image",
    responses={
        200: {"description": "Image file"},
        400: {"description": "Invalid path"},
        404: {"description": "File not found"},
    },
)
async def serve_file(file_path: str) -> FileResponse:
    """
    Security:
        - The path is resolved inside the storage root; ../ escapes are rejected
        - Only available with the local backend; WebDAV URLs point elsewhere
    """
    storage = file_service.storage
    if not isinstance(storage, LocalFileStorage):
        raise NotFoundError(resource="file", resource_id=file_path)

    try:
        full_path = storage.resolve(file_path)
    except FileStorageError as e:
        raise ValidationError(message="Invalid file path", field="file_path") from e

    if not full_path.is_file():
        raise NotFoundError(resource="file", resource_id=file_path)

    media_type = mimetypes.guess_type(full_path.name)[0] or "application/octet-stream"
    return FileResponse(
        path=str(full_path),
        media_type=media_type,
        headers={"Cache-Control": "public, max-age=86400"},
    )
