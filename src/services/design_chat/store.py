"""Persistence collaborator for design chat turns."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crud.messages import message_crud
from crud.projects import project_crud
from models.projects import Project
from schemas.design_chat import TokenUsage


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProjectContext:
    """The parts of a project a chat turn reads."""

    id: str
    custom_system_prompt: str | None = None
    llm_parameters: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class StoredMessage:
    role: str
    content: str
    content_json: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class UsageTotals:
    input_tokens: int = 0
    output_tokens: int = 0
    images_generated: int = 0
    total_cost: float = 0.0

    @classmethod
    def from_project(cls, project: Project) -> UsageTotals:
        return cls(
            input_tokens=project.total_input_tokens,
            output_tokens=project.total_output_tokens,
            images_generated=project.total_images_generated,
            total_cost=float(project.total_cost),
        )


class ConversationStore(Protocol):
    """Storage used by a chat turn.

    ``add_usage`` is the single read-modify-write on shared state and must be
    atomic per project: concurrent calls never lose an increment, and cost is
    recomputed from the resulting totals.
    """

    async def get_project(self, project_id: str) -> ProjectContext | None: ...

    async def append_message(
        self,
        project_id: str,
        role: str,
        content: str,
        content_json: dict[str, Any] | None = None,
    ) -> None: ...

    async def list_messages(
        self, project_id: str, limit: int | None = None
    ) -> list[StoredMessage]:
        """Transcript oldest first, optionally only the newest ``limit`` turns."""
        ...

    async def get_usage_totals(self, project_id: str) -> UsageTotals | None: ...

    async def add_usage(
        self, project_id: str, usage: TokenUsage, images_generated: int = 0
    ) -> UsageTotals | None: ...


class SqlAlchemyConversationStore:
    """ConversationStore over the async SQLAlchemy engine.

    Each call opens its own session, so a turn that outlives its HTTP request
    (client disconnect) can keep persisting.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_project(self, project_id: str) -> ProjectContext | None:
        async with self._session_factory() as db:
            project = await project_crud.get(db, project_id)
            if project is None:
                return None
            return ProjectContext(
                id=project.id,
                custom_system_prompt=project.custom_system_prompt,
                llm_parameters=project.llm_parameters,
            )

    async def append_message(
        self,
        project_id: str,
        role: str,
        content: str,
        content_json: dict[str, Any] | None = None,
    ) -> None:
        async with self._session_factory() as db:
            await message_crud.create(db, project_id, role, content, content_json)

    async def list_messages(
        self, project_id: str, limit: int | None = None
    ) -> list[StoredMessage]:
        async with self._session_factory() as db:
            rows = await message_crud.list_for_project(db, project_id, limit=limit)
            return [StoredMessage(m.role, m.content, m.content_json) for m in rows]

    async def get_usage_totals(self, project_id: str) -> UsageTotals | None:
        async with self._session_factory() as db:
            project = await project_crud.get(db, project_id)
            return UsageTotals.from_project(project) if project else None

    async def add_usage(
        self, project_id: str, usage: TokenUsage, images_generated: int = 0
    ) -> UsageTotals | None:
        async with self._session_factory() as db:
            project = await project_crud.add_usage(
                db,
                project_id,
                usage.input_tokens,
                usage.output_tokens,
                images_generated,
            )
            if project is None:
                logger.warning("Usage update for unknown project %s", project_id)
                return None
            return UsageTotals.from_project(project)
