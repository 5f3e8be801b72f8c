"""Service for generating chat titles via LLM."""

import structlog
from langchain_core.language_models import BaseChatModel

from chathub.services.chat_service import DEFAULT_CHAT_TITLE

logger = structlog.get_logger()

MAX_TITLE_WORDS = 6
MAX_TITLE_LENGTH = 50

TITLE_PROMPT = (
    "Generate a short title of at most {max_words} words for a conversation "
    "that starts with the message below. Reply with the title only, "
    "without quotes or punctuation at the end.\n\n{message}"
)


def fallback_title(message: str) -> str:
    """Title used when the model gives nothing usable."""
    return message.strip()[:MAX_TITLE_LENGTH].strip() or DEFAULT_CHAT_TITLE


def clean_title(raw: str) -> str:
    """Strip quotes and whitespace, keep at most six words and 50 characters."""
    title = raw.strip().strip("\"'`“”‘’").strip()
    words = title.split()
    return " ".join(words[:MAX_TITLE_WORDS])[:MAX_TITLE_LENGTH].strip()


class TitleService:
    """Generates concise chat titles from the first user message."""

    def __init__(self, llm: BaseChatModel) -> None:
        self._llm = llm

    async def generate_title(self, message: str) -> str:
        """Summarise a user message into a title; never raises."""
        prompt = TITLE_PROMPT.format(max_words=MAX_TITLE_WORDS, message=message)
        try:
            response = await self._llm.ainvoke(prompt)
        except Exception:
            logger.exception("Title generation failed")
            return fallback_title(message)
        return clean_title(str(response.content)) or fallback_title(message)
