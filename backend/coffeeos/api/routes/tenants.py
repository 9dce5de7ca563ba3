"""Tenant and branch selection routes."""

from typing import List

from fastapi import APIRouter, HTTPException

from coffeeos.api.deps import StoreDep
from coffeeos.schemas.tenant import Branch, Tenant
from coffeeos.store.base import join_path

router = APIRouter()


@router.get("/", response_model=List[Tenant])
def list_tenants(store: StoreDep):
    """All tenants, by name."""
    tenants = [Tenant.from_snapshot(s) for s in store.list_collection("tenants")]
    return sorted(tenants, key=lambda t: t.name.lower())


@router.get("/{tenant_id}/branches", response_model=List[Branch])
def list_branches(store: StoreDep, tenant_id: str):
    """Branches owned by a tenant."""
    if not store.get(join_path("tenants", tenant_id)).exists:
        raise HTTPException(status_code=404, detail="Tenant not found")
    branches = [Branch.from_snapshot(s) for s in store.query("branches", "tenantId", tenant_id)]
    return sorted(branches, key=lambda b: b.name.lower())
