"""Chat stream API router."""

from collections.abc import AsyncGenerator

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import StreamingResponse

from chathub.core.config import settings
from chathub.core.exceptions import NormalizedErrorRoute
from chathub.core.rate_limit import limiter
from chathub.dependencies import DatabaseDep, LLMDep, StreamServiceDep, get_current_user
from chathub.schemas.chat_schema import ChatStreamRequest
from chathub.schemas.response_schema import error_responses
from chathub.services.chat_title_task import generate_chat_title
from chathub.services.stream_service import ChatStreamService, PreparedStream

router = APIRouter(
    prefix="/api/v1/chat",
    tags=["chat"],
    dependencies=[Depends(get_current_user)],
    route_class=NormalizedErrorRoute,
    responses=error_responses(400, 401, 403, 429),
)


async def event_generator(
    stream_service: ChatStreamService,
    prepared: PreparedStream,
) -> AsyncGenerator[str, None]:
    """Generate Server-Sent Events from the model stream."""
    async for event in stream_service.stream(prepared):
        yield f"data: {event.model_dump_json()}\n\n"


@router.post("/stream")
@limiter.limit(settings.rate_limit.chat_stream)
async def stream_chat(
    request: Request,
    body: ChatStreamRequest,
    stream_service: StreamServiceDep,
    background_tasks: BackgroundTasks,
    llm: LLMDep,
    database: DatabaseDep,
) -> StreamingResponse:
    """Stream an assistant reply as Server-Sent Events.

    The chat is created or authorized and the user message saved before the
    first byte is sent; failures up to that point are ordinary JSON errors.
    """
    prepared = await stream_service.prepare(body)
    if prepared.is_new_chat:
        background_tasks.add_task(
            generate_chat_title,
            chat_id=prepared.chat_id,
            message=prepared.first_text,
            llm=llm,
            database=database,
        )
    return StreamingResponse(
        event_generator(stream_service, prepared),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
        background=background_tasks,
    )
