class DomainError(Exception):
    """Base class for domain-specific errors."""

    pass


class ProjectNotFoundError(DomainError):
    """Exception raised when a design project does not exist."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project with id {project_id} not found")
        self.project_id = project_id
