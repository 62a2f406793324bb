"""Reference data endpoints.

Lists the sizes and design types that designs may use.
"""

from fastapi import APIRouter

from apparel_catalog.api.dependencies import CatalogServiceDep
from apparel_catalog.api.schemas import DesignTypeResponse, SizeResponse

router = APIRouter(prefix="/references", tags=["References"])


@router.get(
    "/sizes",
    response_model=list[SizeResponse],
    summary="List sizes",
)
async def list_sizes(service: CatalogServiceDep) -> list[SizeResponse]:
    """List available sizes in size order."""
    return [
        SizeResponse(
            id=size.id,
            name=size.name,
            display_name=size.display_name,
            sort_order=size.sort_order,
        )
        for size in await service.list_sizes()
    ]


@router.get(
    "/types",
    response_model=list[DesignTypeResponse],
    summary="List design types",
)
async def list_types(service: CatalogServiceDep) -> list[DesignTypeResponse]:
    """List available design types."""
    return [
        DesignTypeResponse(id=t.id, name=t.name, description=t.description)
        for t in await service.list_types()
    ]
