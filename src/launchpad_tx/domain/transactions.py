"""Domain models for transaction signing sessions."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from uuid import UUID

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class TransactionStatus(str, Enum):
    """Lifecycle status shared by sessions and their deployments."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class TransactionType(str, Enum):
    """Discriminator used to route confirmed transactions to hooks."""

    TOKEN_DEPLOYMENT = "deploy-token"
    UNISWAP_V2_WETH_DEPLOYMENT = "deploy-uniswap-v2-weth"
    UNISWAP_V2_FACTORY_DEPLOYMENT = "deploy-uniswap-v2-factory"
    UNISWAP_V2_ROUTER_DEPLOYMENT = "deploy-uniswap-v2-router"
    LIQUIDITY_POOL_CREATION = "create-liquidity-pool"
    ADD_LIQUIDITY = "add-liquidity"
    REMOVE_LIQUIDITY = "remove-liquidity"
    SWAP = "swap"
    CONTRACT_CALL = "call-function"


@dataclass(frozen=True)
class MetadataEntry:
    """Opaque key/value context attached to a session."""

    key: str
    value: str


@dataclass(frozen=True)
class AddressSlot:
    """Constructor argument filled with the address another step produces."""

    name: str


@dataclass(frozen=True)
class ContractBuild:
    """Deploy payload whose constructor arguments may reference other steps."""

    bytecode: str
    argument_types: tuple[str, ...] = ()
    arguments: tuple[object, ...] = ()
    produces: str | None = None

    @property
    def consumes(self) -> tuple[str, ...]:
        return tuple(arg.name for arg in self.arguments if isinstance(arg, AddressSlot))


@dataclass(frozen=True)
class TransactionDeployment:
    """One signature-requiring step within a session."""

    title: str
    description: str
    transaction_type: TransactionType
    data: str | None = None
    value: str = "0"
    receiver: str | None = None
    status: TransactionStatus = TransactionStatus.PENDING
    transaction_hash: str | None = None
    contract_address: str | None = None
    build: ContractBuild | None = None

    @property
    def is_ready(self) -> bool:
        """Whether the payload is prepared and can be signed."""
        return self.data is not None


@dataclass(frozen=True)
class TransactionSession:
    """A bounded-lifetime set of transactions awaiting wallet signatures."""

    id: UUID
    chain_id: int
    deployments: tuple[TransactionDeployment, ...]
    status: TransactionStatus
    metadata: tuple[MetadataEntry, ...]
    created_at: datetime
    expires_at: datetime
    addresses: dict[str, str] = field(default_factory=dict)
    version: int = 0

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def metadata_value(self, key: str) -> str | None:
        """Return the first metadata value stored under key."""
        for entry in self.metadata:
            if entry.key == key:
                return entry.value
        return None

    @property
    def signing_path(self) -> str:
        return f"/tx/{self.id}"


def aggregate_status(
    deployments: tuple[TransactionDeployment, ...], failed: bool = False
) -> TransactionStatus:
    """Derive a session status from its members and failure flag."""
    if failed or any(d.status is TransactionStatus.FAILED for d in deployments):
        return TransactionStatus.FAILED
    if deployments and all(
        d.status is TransactionStatus.CONFIRMED for d in deployments
    ):
        return TransactionStatus.CONFIRMED
    return TransactionStatus.PENDING


def mark_confirmed(
    session: TransactionSession,
    index: int,
    transaction_hash: str,
    contract_address: str | None,
) -> TransactionSession:
    """Return a copy of the session with one member confirmed.

    A failed session is returned unchanged; it never leaves the failed state.
    """
    target = session.deployments[index]
    if (
        target.status is not TransactionStatus.PENDING
        or session.status is TransactionStatus.FAILED
    ):
        return session
    deployments = list(session.deployments)
    deployments[index] = replace(
        target,
        status=TransactionStatus.CONFIRMED,
        transaction_hash=transaction_hash,
        contract_address=contract_address,
    )
    addresses = dict(session.addresses)
    if target.build and target.build.produces and contract_address:
        addresses[target.build.produces] = contract_address
    members = tuple(deployments)
    return replace(
        session,
        deployments=members,
        addresses=addresses,
        status=aggregate_status(members),
    )


def mark_failed(
    session: TransactionSession, index: int, transaction_hash: str
) -> TransactionSession:
    """Return a copy of the session poisoned by a failed member."""
    target = session.deployments[index]
    deployments = list(session.deployments)
    if target.status is TransactionStatus.PENDING:
        deployments[index] = replace(
            target,
            status=TransactionStatus.FAILED,
            transaction_hash=transaction_hash,
        )
    return replace(
        session,
        deployments=tuple(deployments),
        status=TransactionStatus.FAILED,
    )
