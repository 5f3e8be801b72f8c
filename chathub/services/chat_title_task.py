"""Background task for generating chat titles."""

import structlog
from langchain_core.language_models import BaseChatModel

from chathub.core.database import Database
from chathub.repositories.chat_repo import ChatRepository
from chathub.services.title_service import TitleService

logger = structlog.get_logger()


async def generate_chat_title(
    chat_id: str,
    message: str,
    llm: BaseChatModel,
    database: Database,
) -> None:
    """Generate and persist a chat title in an independent DB session.

    Designed to run as a FastAPI BackgroundTask so that the stream is not
    blocked by the extra LLM call. A chat deleted in the meantime is skipped.
    """
    try:
        title_service = TitleService(llm)
        title = await title_service.generate_title(message)

        async with database.session_factory() as session:
            repo = ChatRepository(session)
            chat = await repo.find_chat_by_id(chat_id)
            if chat is None:
                logger.info("Chat gone before title was generated", chat_id=chat_id)
                return
            await repo.update_chat(chat, title=title)
            await session.commit()

        logger.info("Chat title generated", chat_id=chat_id, title=title)
    except Exception:
        logger.exception("Failed to generate chat title", chat_id=chat_id)
