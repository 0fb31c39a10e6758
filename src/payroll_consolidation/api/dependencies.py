"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_consolidation.collaborators import EmployeeDirectory
from payroll_consolidation.database import get_session


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency.

    Routes commit explicitly; a failed request is rolled back.
    """
    async with get_session() as session:
        yield session


def get_directory(request: Request) -> EmployeeDirectory:
    """Employee directory configured on the application."""
    return request.app.state.directory


def _parse_uuid_header(value: str, name: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {name} format",
        )


async def get_employer_id(
    x_employer_id: Annotated[str | None, Header()] = None
) -> UUID:
    """Extract the acting employer's ID from header."""
    if not x_employer_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Employer-ID header is required",
        )
    return _parse_uuid_header(x_employer_id, "X-Employer-ID")


async def get_actor_id(
    x_employer_id: Annotated[str | None, Header()] = None
) -> UUID | None:
    """Acting employer for the audit trail, if the caller sent one."""
    if not x_employer_id:
        return None
    return _parse_uuid_header(x_employer_id, "X-Employer-ID")


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Directory = Annotated[EmployeeDirectory, Depends(get_directory)]
EmployerId = Annotated[UUID, Depends(get_employer_id)]
ActorId = Annotated[UUID | None, Depends(get_actor_id)]
