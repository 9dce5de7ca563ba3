"""Tenant, branch and staff schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from coffeeos.schemas.common import DocumentModel, utcnow


class Tenant(DocumentModel):
    """A cafe business; owns branches and menus."""

    id: str
    name: str = Field(..., min_length=1)
    subscription_plan: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Branch(DocumentModel):
    """A physical cafe location under a tenant."""

    id: str
    tenant_id: str
    name: str = Field(..., min_length=1)
    location: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class StaffUser(DocumentModel):
    """Branch staff member; authentication itself lives with the auth provider."""

    id: str
    tenant_id: Optional[str] = None
    branch_id: Optional[str] = None
    username: Optional[str] = None
    display_name: Optional[str] = None
    email: Optional[str] = None
    role: str = "staff"  # staff, cashier, manager, admin
    active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
