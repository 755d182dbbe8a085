"""Transaction signing session lifecycle."""

import asyncio
import logging
import weakref
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID, uuid4

from launchpad_tx.domain.errors import (
    ConcurrentUpdateError,
    DeploymentNotReadyError,
    InvalidIndexError,
    InvalidRequestError,
    SessionFailedError,
    SessionNotFoundError,
    StorageError,
    VerificationFailedError,
)
from launchpad_tx.domain.transactions import (
    MetadataEntry,
    TransactionDeployment,
    TransactionSession,
    TransactionStatus,
    mark_confirmed,
    mark_failed,
)
from launchpad_tx.services.chains import ChainRegistry
from launchpad_tx.services.hooks import ConfirmedTransaction, HookDispatcher
from launchpad_tx.services.orchestrator import DeploymentOrchestrator
from launchpad_tx.services.verification import TransactionVerifier

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = timedelta(minutes=30)


class SessionRepository(Protocol):
    """Persistence interface for transaction sessions."""

    def create_session(self, session: TransactionSession) -> None:
        """Persist a new session."""

    def get_session(self, session_id: UUID) -> TransactionSession | None:
        """Return a session by id, if present."""

    def save_session(self, session: TransactionSession, expected_version: int) -> bool:
        """Replace the stored session if its version still matches.

        Returns False when another writer got there first.
        """


class SessionLocks:
    """Per-session asyncio locks, released once nobody holds them."""

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[UUID, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @asynccontextmanager
    async def hold(self, session_id: UUID) -> AsyncIterator[None]:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        async with lock:
            yield


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SessionService:
    """Creates sessions and reconciles wallet-submitted transactions."""

    session_repository: SessionRepository
    chain_registry: ChainRegistry
    verifier: TransactionVerifier
    hook_dispatcher: HookDispatcher
    orchestrator: DeploymentOrchestrator = field(default_factory=DeploymentOrchestrator)
    ttl: timedelta = DEFAULT_SESSION_TTL
    require_signature: bool = False
    max_write_attempts: int = 3
    clock: Callable[[], datetime] = _utcnow
    locks: SessionLocks = field(default_factory=SessionLocks)

    def create_session(
        self,
        chain_id: int,
        deployments: Sequence[TransactionDeployment],
        metadata: Sequence[MetadataEntry] = (),
    ) -> TransactionSession:
        """Persist a pending session and prepare its independent steps."""
        if not deployments:
            raise InvalidRequestError("At least one transaction is required")
        if self.chain_registry.resolve(chain_id) is None:
            raise InvalidRequestError(f"Unknown chain {chain_id}")
        self.orchestrator.validate(deployments)
        pending = [
            replace(
                d,
                status=TransactionStatus.PENDING,
                transaction_hash=None,
                contract_address=None,
            )
            for d in deployments
        ]
        now = self.clock()
        session = TransactionSession(
            id=uuid4(),
            chain_id=chain_id,
            deployments=self.orchestrator.prepare(pending, {}),
            status=TransactionStatus.PENDING,
            metadata=tuple(metadata),
            created_at=now,
            expires_at=now + self.ttl,
        )
        self.session_repository.create_session(session)
        logger.info(
            "Created session %s with %d transaction(s) on chain %s",
            session.id,
            len(session.deployments),
            chain_id,
        )
        return session

    def get_session(self, session_id: UUID) -> TransactionSession:
        """Return a live session; expired and unknown ids look the same."""
        session = self.session_repository.get_session(session_id)
        if session is None or session.is_expired(self.clock()):
            raise SessionNotFoundError()
        return session

    async def confirm_deployment(  # noqa: PLR0913
        self,
        session_id: UUID,
        index: int,
        transaction_hash: str,
        observed_status: TransactionStatus = TransactionStatus.CONFIRMED,
        contract_address: str | None = None,
        signed_message: str | None = None,
        signature: str | None = None,
    ) -> TransactionSession:
        """Verify a submitted transaction and record its outcome."""
        async with self.locks.hold(session_id):
            session = self.get_session(session_id)
            if not 0 <= index < len(session.deployments):
                raise InvalidIndexError(index)
            deployment = session.deployments[index]
            if deployment.status is TransactionStatus.CONFIRMED:
                return session
            if session.status is TransactionStatus.FAILED:
                raise SessionFailedError()
            if not deployment.is_ready:
                raise DeploymentNotReadyError(index)
            if observed_status is TransactionStatus.FAILED:
                logger.info(
                    "Wallet reported %s as failed; checking chain", transaction_hash
                )
            if self.require_signature:
                await self.verifier.verify_sender_signature(
                    transaction_hash,
                    session.chain_id,
                    signed_message or "",
                    signature or "",
                )

            try:
                result = await self.verifier.verify_transaction_success(
                    transaction_hash, session.chain_id
                )
                if not result.success:
                    raise VerificationFailedError(
                        "Transaction failed on-chain "
                        f"(status: {result.receipt.status})"
                    )
                address = result.receipt.contract_address or contract_address
                if deployment.build and deployment.build.produces and not address:
                    raise VerificationFailedError(
                        f"No contract address for {transaction_hash}; "
                        f"{deployment.build.produces} cannot be filled"
                    )
            except VerificationFailedError:
                logger.warning(
                    "Verification of %s failed; failing session %s",
                    transaction_hash,
                    session_id,
                )
                try:
                    self._write(
                        session,
                        lambda current: mark_failed(current, index, transaction_hash),
                    )
                except StorageError:
                    logger.exception("Failed to persist failure of %s", session_id)
                raise

            updated = self._write(
                session,
                lambda current: self.orchestrator.advance(
                    mark_confirmed(current, index, transaction_hash, address)
                ),
            )
            if updated.deployments[index].status is not TransactionStatus.CONFIRMED:
                raise SessionFailedError()

        if updated.status is TransactionStatus.CONFIRMED:
            logger.info("Session %s confirmed", session_id)
        await self.hook_dispatcher.dispatch(
            ConfirmedTransaction(
                transaction_type=deployment.transaction_type,
                transaction_hash=transaction_hash,
                contract_address=address,
                session=updated,
            )
        )
        return updated

    def _write(
        self,
        session: TransactionSession,
        mutate: Callable[[TransactionSession], TransactionSession],
    ) -> TransactionSession:
        """Apply a mutation with optimistic versioning, re-reading on conflict."""
        current = session
        for _ in range(self.max_write_attempts):
            updated = mutate(current)
            if updated == current:
                return current
            updated = replace(updated, version=current.version + 1)
            if self.session_repository.save_session(updated, current.version):
                return updated
            logger.info("Concurrent update of session %s; retrying", session.id)
            reloaded = self.session_repository.get_session(session.id)
            if reloaded is None:
                raise SessionNotFoundError()
            current = reloaded
        raise ConcurrentUpdateError(f"Could not update session {session.id}")

