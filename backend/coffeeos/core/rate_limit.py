"""Shared rate limiter instance for use across route files."""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from coffeeos.core.config import settings


def get_branch_or_ip(request: Request) -> str:
    """Rate limit per branch terminal group when a branch is selected, else by IP."""
    branch_id = request.headers.get("X-Branch-Id")
    if branch_id:
        return f"branch:{branch_id}:{get_remote_address(request)}"
    return get_remote_address(request)


limiter = Limiter(key_func=get_branch_or_ip, enabled=settings.rate_limit_enabled)
