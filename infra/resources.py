"""Infrastructure resources: database engine and the chat model client.

This module is part of the infra layer and must not import from application features.
"""
from typing import Optional

from langchain_openai import ChatOpenAI
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker


class DatabaseResource:
    """Database resource for dependency injection."""

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine = None
        self.session_factory = None

    async def init(self):
        """Initialize database connection."""
        self.engine = create_async_engine(
            self.database_url,
            echo=False,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        return self

    def get_session(self) -> AsyncSession:
        """Get database session (synchronous accessor)."""
        if self.session_factory is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self.session_factory()

    async def shutdown(self):
        """Shutdown database connection."""
        if self.engine:
            await self.engine.dispose()


def build_chat_model(
    *,
    model: str,
    api_key: str,
    temperature: float,
    max_tokens: int,
    timeout: float,
    base_url: Optional[str] = None,
) -> ChatOpenAI:
    """Create the LangChain chat model used by the advisor.

    The client carries its own request timeout; callers do not retry.
    """
    return ChatOpenAI(
        model=model,
        api_key=api_key or None,
        base_url=base_url or None,
        temperature=temperature,
        max_tokens=max_tokens,
        timeout=timeout,
        max_retries=0,
    )
