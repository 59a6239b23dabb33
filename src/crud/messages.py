from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.messages import Message


class MessageCRUD:
    """Append-only transcript storage for design projects."""

    async def create(
        self,
        db: AsyncSession,
        project_id: str,
        role: str,
        content: str,
        content_json: dict[str, Any] | None = None,
    ) -> Message:
        """Append a message to the end of a project's transcript."""
        last_seq = await db.execute(
            select(func.coalesce(func.max(Message.seq), 0)).where(
                Message.project_id == project_id
            )
        )
        message = Message(
            project_id=project_id,
            seq=last_seq.scalar_one() + 1,
            role=role,
            content=content,
            content_json=content_json,
        )
        db.add(message)
        await db.commit()
        await db.refresh(message)
        return message

    async def list_for_project(
        self, db: AsyncSession, project_id: str, limit: int | None = None
    ) -> list[Message]:
        """Return the transcript oldest first; with ``limit``, only the newest N."""
        if limit is None:
            result = await db.execute(
                select(Message)
                .where(Message.project_id == project_id)
                .order_by(Message.created_at.asc(), Message.seq.asc())
            )
            return list(result.scalars().all())

        result = await db.execute(
            select(Message)
            .where(Message.project_id == project_id)
            .order_by(Message.created_at.desc(), Message.seq.desc())
            .limit(limit)
        )
        return list(reversed(result.scalars().all()))


# Create singleton instance
message_crud = MessageCRUD()
