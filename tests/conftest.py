"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID

import pytest

from launchpad_tx.adapters.rpc_client import RpcClient
from launchpad_tx.config import Settings
from launchpad_tx.containers import AppContainer
from launchpad_tx.domain.chains import ChainConfig
from launchpad_tx.domain.records import LiquidityPool, UniswapDeployment
from launchpad_tx.domain.transactions import (
    TransactionDeployment,
    TransactionSession,
    TransactionType,
)
from launchpad_tx.services.chains import ChainRegistry, ChainRepository
from launchpad_tx.services.deployment_hooks import (
    DeploymentRecordRepository,
    LiquidityPoolRepository,
    UniswapDeploymentRepository,
)
from launchpad_tx.services.hooks import HookDispatcher
from launchpad_tx.services.sessions import SessionRepository, SessionService
from launchpad_tx.services.verification import TransactionVerifier

CHAIN_ID = 1
RPC_URL = "https://rpc.test"


def tx_hash(seed: int) -> str:
    return "0x" + f"{seed:064x}"


def contract_address(seed: int) -> str:
    return "0x" + f"{seed:040x}"


def receipt(
    transaction_hash: str, status: str = "0x1", address: str | None = None
) -> dict[str, object]:
    return {
        "transactionHash": transaction_hash,
        "blockNumber": "0x10",
        "status": status,
        "contractAddress": address,
        "from": "0x" + "1" * 40,
        "to": None,
        "gasUsed": "0x5208",
    }


def call_deployment(
    title: str = "Deploy token",
    transaction_type: TransactionType = TransactionType.TOKEN_DEPLOYMENT,
) -> TransactionDeployment:
    return TransactionDeployment(
        title=title,
        description=f"{title} description",
        transaction_type=transaction_type,
        data="0x6080",
    )


@dataclass
class FakeClock:
    """Controllable clock for expiry tests."""

    now: datetime = field(default_factory=lambda: datetime(2025, 1, 1, tzinfo=UTC))

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float) -> None:
        self.now += timedelta(minutes=minutes)


@dataclass
class InMemorySessionRepository(SessionRepository):
    """In-memory session repository with versioned writes."""

    sessions: dict[UUID, TransactionSession] = field(default_factory=dict)
    writes: int = 0
    conflicts_to_inject: int = 0

    def create_session(self, session: TransactionSession) -> None:
        self.sessions[session.id] = session

    def get_session(self, session_id: UUID) -> TransactionSession | None:
        return self.sessions.get(session_id)

    def save_session(self, session: TransactionSession, expected_version: int) -> bool:
        stored = self.sessions.get(session.id)
        if stored is None or stored.version != expected_version:
            return False
        if self.conflicts_to_inject:
            self.conflicts_to_inject -= 1
            self.sessions[session.id] = replace(stored, version=stored.version + 1)
            return False
        self.sessions[session.id] = session
        self.writes += 1
        return True


@dataclass
class InMemoryChainRepository(ChainRepository):
    """In-memory chain repository for tests."""

    chains: dict[int, ChainConfig] = field(
        default_factory=lambda: {
            CHAIN_ID: ChainConfig(
                id=CHAIN_ID,
                name="anvil",
                chain_type="ethereum",
                rpc_url=RPC_URL,
                network_id="31337",
            )
        }
    )

    def get_chain(self, chain_id: int) -> ChainConfig | None:
        return self.chains.get(chain_id)


@dataclass
class FakeRpcClient(RpcClient):
    """Fake node answering from in-memory receipts and transactions."""

    receipts: dict[str, dict[str, object]] = field(default_factory=dict)
    transactions: dict[str, dict[str, object]] = field(default_factory=dict)
    eth_call_result: str | None = None
    error: Exception | None = None
    delay: float = 0
    calls: list[tuple[str, str, list[object]]] = field(default_factory=list)

    async def call(
        self, rpc_url: str, method: str, params: list[object]
    ) -> object | None:
        self.calls.append((rpc_url, method, params))
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if method == "eth_getTransactionReceipt":
            return self.receipts.get(str(params[0]))
        if method == "eth_getTransactionByHash":
            return self.transactions.get(str(params[0]))
        if method == "eth_call":
            return self.eth_call_result
        raise AssertionError(f"Unexpected RPC method {method}")


@dataclass
class InMemoryDeploymentRecordRepository(DeploymentRecordRepository):
    confirmed: dict[str, str] = field(default_factory=dict)

    def confirm_deployment(self, transaction_hash: str, contract_address: str) -> None:
        self.confirmed[transaction_hash] = contract_address


@dataclass
class InMemoryUniswapDeploymentRepository(UniswapDeploymentRepository):
    deployments: dict[int, UniswapDeployment] = field(default_factory=dict)

    def get_by_chain(self, chain_id: int) -> UniswapDeployment | None:
        for deployment in self.deployments.values():
            if deployment.chain_id == chain_id:
                return deployment
        return None

    def set_address(
        self, deployment_id: int, field: str, address: str
    ) -> UniswapDeployment:
        updated = replace(self.deployments[deployment_id], **{field: address})
        self.deployments[deployment_id] = updated
        return updated

    def update_status(self, deployment_id: int, status: str) -> None:
        self.deployments[deployment_id] = replace(
            self.deployments[deployment_id], status=status
        )


@dataclass
class InMemoryLiquidityPoolRepository(LiquidityPoolRepository):
    pools: dict[int, LiquidityPool] = field(default_factory=dict)

    def get_by_session(self, session_id: str) -> LiquidityPool | None:
        for pool in self.pools.values():
            if pool.session_id == session_id:
                return pool
        return None

    def confirm_pool(
        self, pool_id: int, pair_address: str, transaction_hash: str
    ) -> None:
        self.pools[pool_id] = replace(
            self.pools[pool_id],
            status="confirmed",
            pair_address=pair_address,
            transaction_hash=transaction_hash,
        )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
        public_base_url="https://launchpad.test",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rpc_client() -> FakeRpcClient:
    return FakeRpcClient()


@pytest.fixture
def chain_registry() -> ChainRegistry:
    return ChainRegistry(InMemoryChainRepository())


@pytest.fixture
def verifier(rpc_client: FakeRpcClient, chain_registry: ChainRegistry) -> TransactionVerifier:
    return TransactionVerifier(
        rpc_client=rpc_client, chain_registry=chain_registry, timeout_seconds=1
    )


@pytest.fixture
def session_repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def hook_dispatcher() -> HookDispatcher:
    return HookDispatcher()


@pytest.fixture
def session_service(
    session_repository: InMemorySessionRepository,
    chain_registry: ChainRegistry,
    verifier: TransactionVerifier,
    hook_dispatcher: HookDispatcher,
    clock: FakeClock,
) -> SessionService:
    return SessionService(
        session_repository=session_repository,
        chain_registry=chain_registry,
        verifier=verifier,
        hook_dispatcher=hook_dispatcher,
        clock=clock,
    )


@pytest.fixture
def container(
    settings: Settings,
    chain_registry: ChainRegistry,
    verifier: TransactionVerifier,
    hook_dispatcher: HookDispatcher,
    session_service: SessionService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        chain_registry=chain_registry,
        verifier=verifier,
        hook_dispatcher=hook_dispatcher,
        session_service=session_service,
        close_resources=close_resources,
    )
