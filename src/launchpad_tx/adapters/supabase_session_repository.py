"""Supabase-backed transaction session repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client, PostgrestAPIError

from launchpad_tx.domain.errors import StorageError
from launchpad_tx.domain.transactions import (
    AddressSlot,
    ContractBuild,
    MetadataEntry,
    TransactionDeployment,
    TransactionSession,
    TransactionStatus,
    TransactionType,
)
from launchpad_tx.services.sessions import SessionRepository

_COLUMNS = (
    "id, chain_id, status, metadata_json, deployments_json, addresses_json, "
    "created_at, expires_at, version"
)


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for transaction sessions.

    Deployments live in a JSON column of the session row, so every write of
    a session is a single-row statement.
    """

    client: Client

    def create_session(self, session: TransactionSession) -> None:
        """Insert a session row."""
        try:
            response = (
                self.client.table("transaction_sessions")
                .insert(_session_to_row(session))
                .execute()
            )
        except PostgrestAPIError as exc:
            raise StorageError(f"Failed to create session: {exc}") from exc
        if not response.data:
            raise StorageError("Failed to create session")

    def get_session(self, session_id: UUID) -> TransactionSession | None:
        """Return a session by id, if present."""
        try:
            response = (
                self.client.table("transaction_sessions")
                .select(_COLUMNS)
                .eq("id", str(session_id))
                .limit(1)
                .execute()
            )
        except PostgrestAPIError as exc:
            raise StorageError(f"Failed to load session: {exc}") from exc
        if not response.data:
            return None
        return _row_to_session(response.data[0])

    def save_session(self, session: TransactionSession, expected_version: int) -> bool:
        """Update the row only if nobody else bumped its version."""
        row = _session_to_row(session)
        row.pop("id")
        row.pop("created_at")
        row["updated_at"] = datetime.now(tz=UTC).isoformat()
        try:
            response = (
                self.client.table("transaction_sessions")
                .update(row)
                .eq("id", str(session.id))
                .eq("version", expected_version)
                .execute()
            )
        except PostgrestAPIError as exc:
            raise StorageError(f"Failed to update session: {exc}") from exc
        return bool(response.data)


def _session_to_row(session: TransactionSession) -> dict[str, object]:
    return {
        "id": str(session.id),
        "chain_id": session.chain_id,
        "status": session.status.value,
        "metadata_json": [
            {"key": entry.key, "value": entry.value} for entry in session.metadata
        ],
        "deployments_json": [_deployment_to_json(d) for d in session.deployments],
        "addresses_json": dict(session.addresses),
        "created_at": session.created_at.isoformat(),
        "expires_at": session.expires_at.isoformat(),
        "version": session.version,
    }


def _row_to_session(row: dict[str, object]) -> TransactionSession:
    return TransactionSession(
        id=UUID(str(row["id"])),
        chain_id=int(row["chain_id"]),
        status=TransactionStatus(row["status"]),
        metadata=tuple(
            MetadataEntry(key=str(item["key"]), value=str(item["value"]))
            for item in row.get("metadata_json") or []
        ),
        deployments=tuple(
            _deployment_from_json(item) for item in row.get("deployments_json") or []
        ),
        addresses=dict(row.get("addresses_json") or {}),
        created_at=_parse_timestamp(row["created_at"]),
        expires_at=_parse_timestamp(row["expires_at"]),
        version=int(row.get("version") or 0),
    )


def _deployment_to_json(deployment: TransactionDeployment) -> dict[str, object]:
    payload: dict[str, object] = {
        "title": deployment.title,
        "description": deployment.description,
        "transaction_type": deployment.transaction_type.value,
        "data": deployment.data,
        "value": deployment.value,
        "receiver": deployment.receiver,
        "status": deployment.status.value,
        "transaction_hash": deployment.transaction_hash,
        "contract_address": deployment.contract_address,
        "build": None,
    }
    build = deployment.build
    if build is not None:
        payload["build"] = {
            "bytecode": build.bytecode,
            "argument_types": list(build.argument_types),
            "arguments": [
                {"slot": arg.name} if isinstance(arg, AddressSlot) else {"value": arg}
                for arg in build.arguments
            ],
            "produces": build.produces,
        }
    return payload


def _deployment_from_json(payload: dict[str, object]) -> TransactionDeployment:
    build = None
    raw_build = payload.get("build")
    if isinstance(raw_build, dict):
        build = ContractBuild(
            bytecode=str(raw_build["bytecode"]),
            argument_types=tuple(raw_build.get("argument_types") or ()),
            arguments=tuple(
                AddressSlot(arg["slot"]) if "slot" in arg else arg.get("value")
                for arg in raw_build.get("arguments") or ()
            ),
            produces=raw_build.get("produces"),
        )
    return TransactionDeployment(
        title=str(payload.get("title", "")),
        description=str(payload.get("description", "")),
        transaction_type=TransactionType(payload["transaction_type"]),
        data=payload.get("data"),
        value=str(payload.get("value") or "0"),
        receiver=payload.get("receiver"),
        status=TransactionStatus(payload.get("status", "pending")),
        transaction_hash=payload.get("transaction_hash"),
        contract_address=payload.get("contract_address"),
        build=build,
    )


def _parse_timestamp(value: object) -> datetime:
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
