"""Shared FastAPI dependencies.

Application-wide collaborators (reference resolver, listing cache,
audit publisher) are created in the lifespan and kept on ``app.state``;
the database session is per request.
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from apparel_catalog.catalog.service import CatalogService
from apparel_catalog.infrastructure.config import settings
from apparel_catalog.infrastructure.database import get_session

OWNER_HEADER = "X-Owner-Id"


def get_owner_id(
    x_owner_id: Annotated[str | None, Header()] = None,
) -> str:
    """Get the owner id resolved by the upstream auth layer.

    Raises:
        HTTPException: 401 if the header is missing or blank.
    """
    if x_owner_id is None or not x_owner_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error_code": "UNAUTHORIZED",
                "message": f"Missing {OWNER_HEADER} header",
            },
        )
    return x_owner_id.strip()


def get_catalog_service(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CatalogService:
    """Get catalog service bound to the request's session."""
    state = request.app.state
    return CatalogService(
        session,
        references=state.references,
        cache=state.cache,
        audit=state.audit,
        max_page_size=settings.max_page_size,
    )


CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]
OwnerIdDep = Annotated[str, Depends(get_owner_id)]
