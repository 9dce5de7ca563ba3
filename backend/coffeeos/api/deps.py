"""Shared route dependencies: the document store and the branch context."""

from typing import Annotated, Optional

from fastapi import Depends, Header
from starlette.requests import HTTPConnection

from coffeeos.services.context import BranchContext, resolve_context
from coffeeos.store.base import DocumentStore


def get_store(connection: HTTPConnection) -> DocumentStore:
    """Store built at startup and kept on the application state."""
    return connection.app.state.store


StoreDep = Annotated[DocumentStore, Depends(get_store)]


def get_context(
    store: StoreDep,
    x_tenant_id: Optional[str] = Header(None),
    x_branch_id: Optional[str] = Header(None),
) -> BranchContext:
    return resolve_context(store, x_tenant_id, x_branch_id)


ContextDep = Annotated[BranchContext, Depends(get_context)]
