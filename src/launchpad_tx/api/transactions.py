"""Signing page data and confirmation endpoints."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Request

from launchpad_tx.api.models import TransactionCompleteRequest, session_payload
from launchpad_tx.domain.errors import InvalidRequestError, SessionNotFoundError

if TYPE_CHECKING:
    from launchpad_tx.containers import AppContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tx", tags=["transactions"])


def _parse_session_id(raw: str) -> UUID:
    try:
        return UUID(raw)
    except ValueError as exc:
        raise SessionNotFoundError() from exc


@router.get("/{session_id}")
async def get_session(session_id: str, request: Request) -> dict[str, object]:
    """Return the session rendered by the signing page."""
    container: AppContainer = request.app.state.container
    session = container.session_service.get_session(_parse_session_id(session_id))
    return session_payload(
        session, container.session_service.orchestrator.next_step(session)
    )


@router.post("/{session_id}/transaction/{index}")
async def complete_transaction(
    session_id: str,
    index: str,
    body: TransactionCompleteRequest,
    request: Request,
) -> dict[str, object]:
    """Verify a wallet-submitted transaction and update the session."""
    container: AppContainer = request.app.state.container
    try:
        parsed_index = int(index)
    except ValueError as exc:
        raise InvalidRequestError("Invalid index") from exc
    session = await container.session_service.confirm_deployment(
        _parse_session_id(session_id),
        parsed_index,
        body.transaction_hash,
        observed_status=body.status,
        contract_address=body.contract_address,
        signed_message=body.signed_message,
        signature=body.signature,
    )
    deployment = session.deployments[parsed_index]
    response = body.model_dump(by_alias=True, mode="json")
    response["status"] = deployment.status.value
    response["contractAddress"] = deployment.contract_address or body.contract_address
    response["sessionStatus"] = session.status.value
    return response
