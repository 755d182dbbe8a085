"""Post-confirmation side-effect dispatch."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from launchpad_tx.domain.transactions import TransactionSession, TransactionType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfirmedTransaction:
    """A sub-transaction that was verified on-chain."""

    transaction_type: TransactionType
    transaction_hash: str
    contract_address: str | None
    session: TransactionSession


HookHandler = Callable[[ConfirmedTransaction], Awaitable[None]]


@dataclass
class HookDispatcher:
    """Registry of side-effect handlers keyed by transaction type.

    Handlers may see the same confirmation more than once and must be
    idempotent.
    """

    handlers: dict[TransactionType, list[HookHandler]] = field(default_factory=dict)

    def register(self, transaction_type: TransactionType, handler: HookHandler) -> None:
        """Add a handler; handlers for a type run in registration order."""
        self.handlers.setdefault(transaction_type, []).append(handler)

    async def dispatch(self, event: ConfirmedTransaction) -> list[Exception]:
        """Run every handler for the event's type and return their failures."""
        failures: list[Exception] = []
        for handler in self.handlers.get(event.transaction_type, []):
            try:
                await handler(event)
            except Exception as exc:
                logger.exception(
                    "Hook %s failed for %s in session %s",
                    getattr(handler, "__name__", type(handler).__name__),
                    event.transaction_hash,
                    event.session.id,
                )
                failures.append(exc)
        return failures
