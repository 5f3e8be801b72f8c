"""Message API routers."""

from fastapi import APIRouter, Depends, Response, status

from chathub.core.exceptions import NormalizedErrorRoute
from chathub.dependencies import ChatServiceDep, get_current_user
from chathub.schemas.chat_schema import (
    MessageData,
    MessageListData,
    SaveMessageRequest,
    SuccessData,
    TrailingDeleteData,
    UpdateMessageRequest,
)
from chathub.schemas.response_schema import ApiResponse, error_responses, success_response

router = APIRouter(
    prefix="/api/v1/chats/{chat_id}/messages",
    tags=["messages"],
    dependencies=[Depends(get_current_user)],
    route_class=NormalizedErrorRoute,
    responses=error_responses(401, 403, 404),
)

trailing_router = APIRouter(
    prefix="/api/v1/messages",
    tags=["messages"],
    dependencies=[Depends(get_current_user)],
    route_class=NormalizedErrorRoute,
    responses=error_responses(401, 403, 404),
)


@router.get("", response_model=ApiResponse[MessageListData])
async def list_messages(chat_id: str, service: ChatServiceDep) -> dict:
    """List a chat's messages in order."""
    return success_response(await service.list_messages(chat_id))


@router.post(
    "",
    response_model=ApiResponse[MessageData],
    responses=error_responses(400),
)
async def save_message(
    chat_id: str, request: SaveMessageRequest, service: ChatServiceDep
) -> dict:
    """Persist one message; repeating a known id returns the stored message."""
    message = await service.save_message(chat_id, request)
    return success_response(MessageData(message=message))


@router.patch(
    "/{message_id}",
    response_model=ApiResponse[MessageData],
    responses=error_responses(400),
)
async def update_message(
    chat_id: str,
    message_id: str,
    request: UpdateMessageRequest,
    service: ChatServiceDep,
) -> dict:
    """Replace a message's content."""
    message = await service.update_message(chat_id, message_id, request)
    return success_response(MessageData(message=message), message="Message updated")


@router.delete("/{message_id}", response_model=ApiResponse[SuccessData])
async def delete_message(
    chat_id: str, message_id: str, service: ChatServiceDep
) -> dict:
    """Delete a single message."""
    await service.delete_message(chat_id, message_id)
    return success_response(SuccessData(), message="Message deleted")


@router.delete(
    "/{message_id}/after",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_messages_after(
    chat_id: str, message_id: str, service: ChatServiceDep
) -> Response:
    """Delete a message and everything after it."""
    await service.delete_messages_after(chat_id, message_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@trailing_router.delete(
    "/{message_id}/trailing",
    response_model=ApiResponse[TrailingDeleteData],
)
async def delete_trailing_messages(message_id: str, service: ChatServiceDep) -> dict:
    """Delete a message and everything after it, resolving the chat from the message."""
    result = await service.delete_trailing_messages(message_id)
    return success_response(result, message="Messages deleted")
