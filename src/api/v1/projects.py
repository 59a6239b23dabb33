from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ProjectNotFoundError
from crud.messages import message_crud
from crud.projects import project_crud
from dependencies.db import get_db
from models.projects import Project
from schemas.projects import (
    LLMParametersRead,
    LLMParametersUpdate,
    MessageRead,
    ProjectCreate,
    ProjectRead,
    SystemPromptRead,
    SystemPromptUpdate,
)


router = APIRouter(prefix="/projects", tags=["projects"])


async def _get_project_or_404(db: AsyncSession, project_id: str) -> Project:
    project = await project_crud.get(db, project_id)
    if project is None:
        raise ProjectNotFoundError(project_id)
    return project


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProjectRead:
    """Create an empty design project."""
    project = await project_crud.create(db, project_data)
    return ProjectRead.model_validate(project)


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(
    project_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProjectRead:
    """Get a project with its running token usage and cost."""
    project = await _get_project_or_404(db, project_id)
    return ProjectRead.model_validate(project)


@router.get("/{project_id}/messages", response_model=list[MessageRead])
async def list_project_messages(
    project_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[MessageRead]:
    """Full transcript, oldest first."""
    await _get_project_or_404(db, project_id)
    messages = await message_crud.list_for_project(db, project_id)
    return [MessageRead.model_validate(m) for m in messages]


@router.get("/{project_id}/system-prompt", response_model=SystemPromptRead)
async def get_system_prompt(
    project_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> SystemPromptRead:
    project = await _get_project_or_404(db, project_id)
    return SystemPromptRead(
        system_prompt=project.custom_system_prompt,
        is_custom=project.custom_system_prompt is not None,
    )


@router.put("/{project_id}/system-prompt", response_model=SystemPromptRead)
async def update_system_prompt(
    project_id: str,
    update: SystemPromptUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> SystemPromptRead:
    """Set the custom system prompt; ``null`` or blank restores the default."""
    project = await _get_project_or_404(db, project_id)
    project = await project_crud.set_system_prompt(db, project, update.system_prompt)
    return SystemPromptRead(
        system_prompt=project.custom_system_prompt,
        is_custom=project.custom_system_prompt is not None,
    )


@router.get("/{project_id}/llm-parameters", response_model=LLMParametersRead)
async def get_llm_parameters(
    project_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> LLMParametersRead:
    project = await _get_project_or_404(db, project_id)
    return LLMParametersRead(llm_parameters=project.llm_parameters)


@router.put("/{project_id}/llm-parameters", response_model=LLMParametersRead)
async def update_llm_parameters(
    project_id: str,
    update: LLMParametersUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> LLMParametersRead:
    """Replace generation overrides; ``null`` or an empty object clears them."""
    project = await _get_project_or_404(db, project_id)
    stored = update.llm_parameters.to_storage() if update.llm_parameters else None
    project = await project_crud.set_llm_parameters(db, project, stored)
    return LLMParametersRead(llm_parameters=project.llm_parameters)
