"""Session creation endpoint for trusted tooling, guarded by an admin token."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from launchpad_tx.api.models import CreateSessionRequest
from launchpad_tx.config import build_signing_url

if TYPE_CHECKING:
    from launchpad_tx.containers import AppContainer

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


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


@router.post(
    "",
    dependencies=[Depends(require_admin)],
    status_code=status.HTTP_201_CREATED,
)
async def create_session(
    body: CreateSessionRequest, request: Request
) -> dict[str, object]:
    """Open a signing session and return the URL to hand to the user."""
    container: AppContainer = request.app.state.container
    session = container.session_service.create_session(
        chain_id=body.chain_id,
        deployments=body.to_deployments(),
        metadata=body.metadata_entries(),
    )
    return {
        "session_id": str(session.id),
        "url": build_signing_url(
            container.settings.public_base_url, session.signing_path
        ),
        "expires_at": session.expires_at.isoformat(),
    }
