"""
FastAPI integration for feature flags.

Usage:
    from flagkit.features.dependencies import Flags, ensure_feature, flag_lifespan

    flags = create_flag_manager(db=async_session_factory)
    app = FastAPI(lifespan=flag_lifespan(flags))

    @router.get("/dashboard")
    async def dashboard(flags: Flags, user: CurrentUser):
        if await flags.active("new-dashboard", user):
            return new_dashboard()
        return old_dashboard()

    @router.get("/beta", dependencies=[Depends(ensure_feature("beta-ui"))])
    async def beta():
        ...
"""

from contextlib import asynccontextmanager
from typing import Annotated, Any, AsyncGenerator, Callable

from fastapi import Depends, FastAPI, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.config import FlagSettings, get_settings
from ..core.hooks import HookManager
from .manager import FlagManager


# ============================================================
# MANAGER WIRING
# ============================================================

def create_flag_manager(
    settings: FlagSettings | None = None,
    db: async_sessionmaker[AsyncSession] | None = None,
    hooks: HookManager | None = None,
) -> FlagManager:
    """Build a manager from settings (FLAG_* environment by default)."""
    return FlagManager(settings or get_settings(), db=db, hooks=hooks)


async def boot_flags(manager: FlagManager) -> None:
    """Create the store's table when FLAG_ENSURE_SCHEMA is on."""
    if manager.config.ensure_schema:
        await manager.ensure_schema()


def flag_lifespan(manager: FlagManager):
    """
    Lifespan handler that attaches the manager to app.state.flags.

    The manager is booted on startup and reset on shutdown.
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        app.state.flags = manager
        await boot_flags(manager)

        yield

        manager.reset()

    return lifespan


# ============================================================
# DEPENDENCIES
# ============================================================

def get_flag_manager(request: Request) -> FlagManager:
    """Get the application's flag manager."""
    manager = getattr(request.app.state, "flags", None)
    if manager is None:
        raise RuntimeError("No FlagManager on app.state.flags; use flag_lifespan().")
    return manager


# Type alias for cleaner injection
Flags = Annotated[FlagManager, Depends(get_flag_manager)]


def _user_scope(request: Request) -> Any | None:
    return getattr(request.state, "user", None)


def ensure_feature(
    feature: str,
    scope_extractor: Callable[[Request], Any | None] | None = None,
):
    """
    Dependency that returns 403 unless a feature is active.

    Args:
        feature: Feature name to check
        scope_extractor: Gets the scope from the request; defaults to request.state.user

    Usage:
        @router.get("/teams/{team_id}/analytics",
                    dependencies=[Depends(ensure_feature("analytics", lambda r: r.state.team))])
        async def analytics(team_id: int):
            ...
    """
    extract = scope_extractor or _user_scope

    async def dependency(request: Request, flags: Flags) -> None:
        if not await flags.active(feature, extract(request)):
            raise HTTPException(status_code=403, detail="Feature not available")

    return dependency
