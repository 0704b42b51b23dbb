"""FastAPI dependency providers for auth, DB sessions, catalog snapshots and the LLM."""

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from chc_rental.agents.llm_provider import LLMProvider, get_llm_provider
from chc_rental.config import get_settings
from chc_rental.db.engine import get_db
from chc_rental.services.auth import AuthContext, get_current_user
from chc_rental.services.catalog import CatalogCache

logger = logging.getLogger(__name__)


async def require_auth(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """Require a valid authenticated session. Returns AuthContext."""
    return await get_current_user(request, db)


def require_role(*allowed_roles: str):
    """Factory: returns a dependency that enforces role membership."""
    async def _check(auth: AuthContext = Depends(require_auth)) -> AuthContext:
        if auth.role not in allowed_roles:
            raise HTTPException(403, "Insufficient permissions")
        return auth
    return _check


_catalog_cache: CatalogCache | None = None


def get_catalog_cache() -> CatalogCache:
    global _catalog_cache
    if _catalog_cache is None:
        _catalog_cache = CatalogCache(ttl=get_settings().catalog.snapshot_ttl_seconds)
    return _catalog_cache


def get_llm() -> LLMProvider | None:
    """The configured LLM provider, or None when the assistant is disabled."""
    try:
        return get_llm_provider()
    except RuntimeError as e:
        logger.warning(f"Assistant running without LLM: {e}")
        return None
