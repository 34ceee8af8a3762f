"""Read-only access to the persisted catalog."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mediamirror.dependencies import get_catalog_store
from mediamirror.schemas import CatalogEntryResponse, CatalogResponse
from mediamirror.services.catalog_store import CatalogStore

router = APIRouter(tags=["Catalog"])


@router.get("/catalog", response_model=CatalogResponse, response_model_exclude_none=True)
def list_catalog(catalog_store: CatalogStore = Depends(get_catalog_store)) -> CatalogResponse:
    entries = [
        CatalogEntryResponse.from_entry(entry)
        for _, entry in sorted(catalog_store.load().items())
    ]
    return CatalogResponse(count=len(entries), entries=entries)
