"""Apparel Catalog.

Designs with per-size variants, cached filtered listings, and
reconciliation of size batches against existing variants.
"""

from apparel_catalog.catalog.cache import ListingCache, ListingKeyParams, build_listing_key
from apparel_catalog.catalog.listing import ListingEngine, ListingQuery, group_variants
from apparel_catalog.catalog.models import Design, DesignType, SizeReference, Variant
from apparel_catalog.catalog.read_models import (
    DesignDetail,
    DesignGroupView,
    ListingPage,
    SizeVariantView,
    VariantView,
)
from apparel_catalog.catalog.reconciliation import (
    PrimaryUpdate,
    ReconciliationEngine,
    ReconciliationResult,
    SizeStock,
)
from apparel_catalog.catalog.references import ReferenceResolver, SizeRef, TypeRef
from apparel_catalog.catalog.repository import CatalogRepository, VariantFilter
from apparel_catalog.catalog.service import (
    CatalogService,
    CreateDesignCommand,
    UpdateDesignCommand,
    UpdateDesignResult,
)

__all__ = [
    # Models
    "Design",
    "DesignType",
    "SizeReference",
    "Variant",
    # Read models
    "DesignDetail",
    "DesignGroupView",
    "ListingPage",
    "SizeVariantView",
    "VariantView",
    # Repository
    "CatalogRepository",
    "VariantFilter",
    # References
    "ReferenceResolver",
    "SizeRef",
    "TypeRef",
    # Cache
    "ListingCache",
    "ListingKeyParams",
    "build_listing_key",
    # Listing
    "ListingEngine",
    "ListingQuery",
    "group_variants",
    # Reconciliation
    "PrimaryUpdate",
    "ReconciliationEngine",
    "ReconciliationResult",
    "SizeStock",
    # Service
    "CatalogService",
    "CreateDesignCommand",
    "UpdateDesignCommand",
    "UpdateDesignResult",
]
