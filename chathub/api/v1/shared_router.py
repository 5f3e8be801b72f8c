"""Public read access to shared chats."""

from fastapi import APIRouter

from chathub.core.exceptions import NormalizedErrorRoute
from chathub.dependencies import PublicChatServiceDep
from chathub.schemas.chat_schema import ChatDetailData
from chathub.schemas.response_schema import ApiResponse, error_responses, success_response

router = APIRouter(
    prefix="/api/v1/shared",
    tags=["shared"],
    route_class=NormalizedErrorRoute,
    responses=error_responses(404),
)


@router.get("/{chat_id}", response_model=ApiResponse[ChatDetailData])
async def get_shared_chat(chat_id: str, service: PublicChatServiceDep) -> dict:
    """Read a public chat without a session."""
    return success_response(await service.get_shared_chat(chat_id))
