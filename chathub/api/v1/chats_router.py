"""Chat CRUD API router."""

from fastapi import APIRouter, Depends

from chathub.core.exceptions import NormalizedErrorRoute
from chathub.dependencies import ChatServiceDep, get_current_user
from chathub.schemas.chat_schema import (
    ChatData,
    ChatDetailData,
    ChatListData,
    CreateChatRequest,
    RenameChatRequest,
    ShareData,
    SuccessData,
    TogglePinRequest,
)
from chathub.schemas.response_schema import ApiResponse, error_responses, success_response

router = APIRouter(
    prefix="/api/v1/chats",
    tags=["chats"],
    dependencies=[Depends(get_current_user)],
    route_class=NormalizedErrorRoute,
    responses=error_responses(401),
)


@router.get("", response_model=ApiResponse[ChatListData])
async def list_chats(service: ChatServiceDep) -> dict:
    """List the caller's chats, pinned first."""
    return success_response(await service.list_chats())


@router.post(
    "",
    response_model=ApiResponse[ChatData],
    responses=error_responses(400),
)
async def create_chat(request: CreateChatRequest, service: ChatServiceDep) -> dict:
    """Create an empty chat."""
    chat = await service.create_chat(request.title, request.id)
    return success_response(ChatData(chat=chat), message="Chat created")


@router.get(
    "/{chat_id}",
    response_model=ApiResponse[ChatDetailData],
    responses=error_responses(403, 404),
)
async def get_chat(chat_id: str, service: ChatServiceDep) -> dict:
    """Fetch a chat with its messages."""
    return success_response(await service.get_chat(chat_id))


@router.patch(
    "/{chat_id}",
    response_model=ApiResponse[ChatData],
    responses=error_responses(400, 403, 404),
)
async def rename_chat(
    chat_id: str, request: RenameChatRequest, service: ChatServiceDep
) -> dict:
    """Rename a chat."""
    chat = await service.rename_chat(chat_id, request.title)
    return success_response(ChatData(chat=chat), message="Chat renamed")


@router.delete(
    "/{chat_id}",
    response_model=ApiResponse[SuccessData],
    responses=error_responses(403, 404),
)
async def delete_chat(chat_id: str, service: ChatServiceDep) -> dict:
    """Delete a chat together with its messages and attachments."""
    await service.delete_chat(chat_id)
    return success_response(SuccessData(), message="Chat deleted")


@router.patch(
    "/{chat_id}/pin",
    response_model=ApiResponse[ChatData],
    responses=error_responses(400, 403, 404),
)
async def toggle_pin(
    chat_id: str, request: TogglePinRequest, service: ChatServiceDep
) -> dict:
    """Pin or unpin a chat."""
    chat = await service.toggle_pin(chat_id, request.pinned)
    return success_response(ChatData(chat=chat))


@router.post(
    "/{chat_id}/share",
    response_model=ApiResponse[ShareData],
    responses=error_responses(403, 404),
)
async def share_chat(chat_id: str, service: ChatServiceDep) -> dict:
    """Make a chat publicly readable."""
    chat = await service.make_public(chat_id)
    return success_response(ShareData(chat=chat), message="Chat shared")
