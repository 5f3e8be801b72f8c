"""Attachment upload API router."""

from fastapi import APIRouter, Depends, Request, UploadFile, status

from chathub.core.config import settings
from chathub.core.exceptions import ChatError, NormalizedErrorRoute
from chathub.core.rate_limit import limiter
from chathub.dependencies import (
    BlobStorageDep,
    CurrentUserDep,
    FileRepositoryDep,
    SessionDep,
    get_current_user,
)
from chathub.schemas.chat_schema import SuccessData
from chathub.schemas.file_schema import FileData, FileResponse
from chathub.schemas.response_schema import ApiResponse, error_responses, success_response

router = APIRouter(
    prefix="/api/v1/files",
    tags=["files"],
    dependencies=[Depends(get_current_user)],
    route_class=NormalizedErrorRoute,
    responses=error_responses(401),
)


@router.post(
    "",
    response_model=ApiResponse[FileData],
    status_code=status.HTTP_201_CREATED,
    responses=error_responses(400, 429),
)
@limiter.limit(settings.rate_limit.upload)
async def upload_file(
    request: Request,
    file: UploadFile,
    current_user: CurrentUserDep,
    file_repo: FileRepositoryDep,
    blob_storage: BlobStorageDep,
) -> dict:
    """Store an attachment; it is linked to a message when that message is saved."""
    content = await file.read()
    if not content:
        raise ChatError("bad_request:file", "File is empty")
    if len(content) > settings.max_file_size_bytes:
        raise ChatError(
            "bad_request:file",
            f"File exceeds {settings.file_upload.max_file_size_mb} MB",
        )

    name = file.filename or "upload"
    url = await blob_storage.put(name, content)
    stored = await file_repo.create(
        user_id=current_user.id,
        name=name,
        url=url,
        media_type=file.content_type or "application/octet-stream",
        size=len(content),
    )
    return success_response(
        FileData(file=FileResponse.model_validate(stored)),
        status=201,
        message="File uploaded",
    )


@router.delete(
    "/{file_id}",
    response_model=ApiResponse[SuccessData],
    responses=error_responses(404),
)
async def delete_file(
    file_id: str,
    current_user: CurrentUserDep,
    file_repo: FileRepositoryDep,
    blob_storage: BlobStorageDep,
    session: SessionDep,
) -> dict:
    """Delete one of the caller's attachments."""
    stored = await file_repo.find_by_id_for_user(file_id, current_user.id)
    if stored is None:
        raise ChatError("not_found:file")
    await file_repo.delete(stored.id)
    await session.commit()
    await blob_storage.delete(stored.url)
    return success_response(SuccessData(), message="File deleted")
