"""Global dependencies for the application."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI
from sqlalchemy.ext.asyncio import AsyncSession

from chathub.core.config import settings
from chathub.core.database import Database, get_async_session, get_database
from chathub.repositories.chat_repo import ChatRepository
from chathub.repositories.file_repo import FileRepository
from chathub.services.authorization import CurrentUser, resolve_caller
from chathub.services.blob_storage import BlobStorage
from chathub.services.chat_service import ChatService
from chathub.services.stream_service import ChatStreamService

# --- Infrastructure ---


@lru_cache
def get_llm() -> BaseChatModel:
    """Get the LLM instance based on the configured provider."""
    llm_config = settings.llm
    match llm_config.provider:
        case "openai":
            return ChatOpenAI(
                model=llm_config.openai_model,
                api_key=llm_config.openai_api_key,
                temperature=llm_config.temperature,
                streaming=True,
            )
        case "anthropic":
            return ChatAnthropic(  # type: ignore[call-arg]
                model_name=llm_config.anthropic_model,
                api_key=llm_config.anthropic_api_key,
                temperature=llm_config.temperature,
                streaming=True,
            )
        case _:
            raise ValueError(f"Unsupported LLM provider: {llm_config.provider}")


@lru_cache
def get_blob_storage() -> BlobStorage:
    """Get the attachment blob store."""
    return BlobStorage.from_config(settings.file_upload)


SessionDep = Annotated[AsyncSession, Depends(get_async_session)]
DatabaseDep = Annotated[Database, Depends(get_database)]
LLMDep = Annotated[BaseChatModel, Depends(get_llm)]
BlobStorageDep = Annotated[BlobStorage, Depends(get_blob_storage)]


# --- Caller ---


def get_current_user(request: Request) -> CurrentUser:
    """Caller resolved by the session middleware; 401 when absent."""
    return resolve_caller(request)


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


# --- Repositories and services ---


def get_chat_repository(session: SessionDep) -> ChatRepository:
    """Get ChatRepository bound to the current session."""
    return ChatRepository(session)


def get_file_repository(session: SessionDep) -> FileRepository:
    """Get FileRepository bound to the current session."""
    return FileRepository(session)


ChatRepositoryDep = Annotated[ChatRepository, Depends(get_chat_repository)]
FileRepositoryDep = Annotated[FileRepository, Depends(get_file_repository)]


def get_chat_service(
    chat_repo: ChatRepositoryDep,
    file_repo: FileRepositoryDep,
    blob_storage: BlobStorageDep,
    session: SessionDep,
    current_user: CurrentUserDep,
) -> ChatService:
    """Get ChatService for the authenticated caller."""
    return ChatService(
        chat_repo=chat_repo,
        file_repo=file_repo,
        blob_storage=blob_storage,
        session=session,
        user_id=current_user.id,
    )


def get_public_chat_service(
    chat_repo: ChatRepositoryDep,
    file_repo: FileRepositoryDep,
    blob_storage: BlobStorageDep,
    session: SessionDep,
) -> ChatService:
    """Get ChatService for unauthenticated reads."""
    return ChatService(
        chat_repo=chat_repo,
        file_repo=file_repo,
        blob_storage=blob_storage,
        session=session,
        user_id=None,
    )


ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
PublicChatServiceDep = Annotated[ChatService, Depends(get_public_chat_service)]


def get_stream_service(
    chat_service: ChatServiceDep,
    llm: LLMDep,
    session: SessionDep,
) -> ChatStreamService:
    """Get ChatStreamService wired to the configured model."""
    return ChatStreamService(
        chat_service=chat_service,
        llm=llm,
        session=session,
        system_prompt=settings.app.system_prompt,
    )


StreamServiceDep = Annotated[ChatStreamService, Depends(get_stream_service)]
