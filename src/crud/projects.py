from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.projects import Project
from schemas.projects import ProjectCreate
from services.pricing import calculate_total_cost


class ProjectCRUD:
    """CRUD operations for design projects."""

    async def get(self, db: AsyncSession, project_id: str) -> Project | None:
        """Get a project by ID."""
        result = await db.execute(select(Project).where(Project.id == project_id))
        return result.scalar_one_or_none()

    async def create(self, db: AsyncSession, project_data: ProjectCreate) -> Project:
        """Create a new project with zeroed usage totals."""
        project = Project(**project_data.model_dump())
        db.add(project)
        await db.commit()
        await db.refresh(project)
        return project

    async def set_system_prompt(
        self, db: AsyncSession, project: Project, system_prompt: str | None
    ) -> Project:
        """Set or clear (``None``) the custom system prompt."""
        project.custom_system_prompt = system_prompt
        await db.commit()
        await db.refresh(project)
        return project

    async def set_llm_parameters(
        self, db: AsyncSession, project: Project, llm_parameters: dict[str, Any] | None
    ) -> Project:
        """Set or clear (``None``) the generation overrides."""
        project.llm_parameters = llm_parameters
        await db.commit()
        await db.refresh(project)
        return project

    async def add_usage(
        self,
        db: AsyncSession,
        project_id: str,
        input_tokens: int,
        output_tokens: int,
        images_generated: int = 0,
    ) -> Project | None:
        """Atomically add usage to a project's running totals.

        One UPDATE adds the deltas and recomputes ``total_cost`` from the new
        totals, so concurrent turns on the same project never lose updates.
        Returns the refreshed project, or ``None`` if it does not exist.
        """
        new_input = Project.total_input_tokens + input_tokens
        new_output = Project.total_output_tokens + output_tokens
        new_images = Project.total_images_generated + images_generated

        result = await db.execute(
            update(Project)
            .where(Project.id == project_id)
            .values(
                total_input_tokens=new_input,
                total_output_tokens=new_output,
                total_images_generated=new_images,
                total_cost=calculate_total_cost(new_input, new_output, new_images),
                updated_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.rollback()
            return None
        await db.commit()

        refreshed = await db.execute(
            select(Project)
            .where(Project.id == project_id)
            .execution_options(populate_existing=True)
        )
        return refreshed.scalar_one_or_none()


# Create singleton instance
project_crud = ProjectCRUD()
