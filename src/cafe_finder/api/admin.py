"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status

if TYPE_CHECKING:
    from cafe_finder.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/analytics", dependencies=[Depends(require_admin)])
async def analytics_summary(
    request: Request,
    limit: int = Query(default=1000, ge=1, le=10000),
    top: int = Query(default=5, ge=1, le=50),
) -> dict[str, object]:
    """Return view and search totals with the most popular cafes and queries."""
    container: AppContainer = request.app.state.container
    return container.analytics_service.summary(limit=limit, top=top)


@router.get("/sessions", dependencies=[Depends(require_admin)])
async def list_sessions(request: Request) -> dict[str, object]:
    """Return the open discovery sessions and their location state."""
    container: AppContainer = request.app.state.container
    return {
        "sessions": [
            {
                "id": session.id,
                "location_status": session.location.status.value,
                "tracking": session.location.tracking,
                "result_count": len(session.results.cafes),
            }
            for session in container.sessions.sessions.values()
        ]
    }
