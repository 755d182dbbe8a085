"""Hooks that persist the outcome of confirmed deployments."""

import logging
from dataclasses import dataclass
from typing import Protocol

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector

from launchpad_tx.domain.records import LiquidityPool, UniswapDeployment
from launchpad_tx.domain.transactions import (
    ZERO_ADDRESS,
    TransactionStatus,
    TransactionType,
)
from launchpad_tx.services.hooks import ConfirmedTransaction, HookDispatcher
from launchpad_tx.services.verification import TransactionVerifier

logger = logging.getLogger(__name__)

_GET_PAIR_SELECTOR = function_signature_to_4byte_selector("getPair(address,address)")

_UNISWAP_ADDRESS_FIELDS = {
    TransactionType.UNISWAP_V2_WETH_DEPLOYMENT: "weth_address",
    TransactionType.UNISWAP_V2_FACTORY_DEPLOYMENT: "factory_address",
    TransactionType.UNISWAP_V2_ROUTER_DEPLOYMENT: "router_address",
}


class DeploymentRecordRepository(Protocol):
    """Persistence interface for template deployment records."""

    def confirm_deployment(self, transaction_hash: str, contract_address: str) -> None:
        """Mark the deployment submitted with this hash as confirmed."""


class UniswapDeploymentRepository(Protocol):
    """Persistence interface for Uniswap infrastructure records."""

    def get_by_chain(self, chain_id: int) -> UniswapDeployment | None:
        """Return the Uniswap deployment for a chain, if present."""

    def set_address(self, deployment_id: int, field: str, address: str) -> UniswapDeployment:
        """Store one contract address and return the updated record."""

    def update_status(self, deployment_id: int, status: str) -> None:
        """Update the deployment status."""


class LiquidityPoolRepository(Protocol):
    """Persistence interface for liquidity pools."""

    def get_by_session(self, session_id: str) -> LiquidityPool | None:
        """Return the pool created through a session, if present."""

    def confirm_pool(self, pool_id: int, pair_address: str, transaction_hash: str) -> None:
        """Mark the pool confirmed with its pair address."""


@dataclass
class TokenDeploymentHook:
    """Records the deployed address of a template or token contract."""

    repository: DeploymentRecordRepository

    async def __call__(self, event: ConfirmedTransaction) -> None:
        if not event.contract_address:
            raise ValueError(f"No contract address for {event.transaction_hash}")
        self.repository.confirm_deployment(
            event.transaction_hash, event.contract_address
        )


@dataclass
class UniswapDeploymentHook:
    """Stores infrastructure addresses and completes the deployment record."""

    repository: UniswapDeploymentRepository

    async def __call__(self, event: ConfirmedTransaction) -> None:
        field = _UNISWAP_ADDRESS_FIELDS.get(event.transaction_type)
        if field is None:
            return
        if not event.contract_address:
            raise ValueError(f"No contract address for {event.transaction_hash}")
        current = self.repository.get_by_chain(event.session.chain_id)
        if current is None:
            raise LookupError(
                f"No uniswap deployment found for chain {event.session.chain_id}"
            )
        updated = self.repository.set_address(current.id, field, event.contract_address)
        if updated.is_complete:
            self.repository.update_status(current.id, TransactionStatus.CONFIRMED.value)


@dataclass
class LiquidityPoolHook:
    """Resolves the pair address of a newly created pool."""

    pools: LiquidityPoolRepository
    uniswap: UniswapDeploymentRepository
    verifier: TransactionVerifier

    async def __call__(self, event: ConfirmedTransaction) -> None:
        session = event.session
        pool = self.pools.get_by_session(str(session.id))
        if pool is None:
            raise LookupError(f"No liquidity pool for session {session.id}")
        token0 = session.metadata_value("token0_address")
        token1 = session.metadata_value("token1_address")
        if not token0 or not token1:
            raise ValueError("Token addresses not found in session metadata")
        deployment = self.uniswap.get_by_chain(session.chain_id)
        if deployment is None or not deployment.factory_address:
            raise LookupError(f"No uniswap factory on chain {session.chain_id}")
        pair = await self._get_pair(
            session.chain_id,
            deployment.factory_address,
            _eth_to_weth(token0, deployment.weth_address),
            _eth_to_weth(token1, deployment.weth_address),
        )
        self.pools.confirm_pool(pool.id, pair, event.transaction_hash)
        logger.info("Pool %s confirmed with pair %s", pool.id, pair)

    async def _get_pair(
        self, chain_id: int, factory: str, token0: str, token1: str
    ) -> str:
        calldata = _GET_PAIR_SELECTOR + encode(["address", "address"], [token0, token1])
        result = await self.verifier.call(
            chain_id,
            "eth_call",
            [{"to": factory, "data": "0x" + calldata.hex()}, "latest"],
        )
        if not isinstance(result, str) or len(result) < 66:
            raise ValueError("Pair does not exist")
        (pair,) = decode(["address"], bytes.fromhex(result[2:]))
        if pair.lower() == ZERO_ADDRESS:
            raise ValueError("Pair does not exist")
        return pair


def _eth_to_weth(token: str, weth_address: str | None) -> str:
    if token.lower() == "eth":
        if not weth_address:
            raise LookupError("WETH address is not deployed")
        return weth_address
    return token


def register_deployment_hooks(
    dispatcher: HookDispatcher,
    deployments: DeploymentRecordRepository,
    uniswap: UniswapDeploymentRepository,
    pools: LiquidityPoolRepository,
    verifier: TransactionVerifier,
) -> None:
    """Wire the default handlers into a dispatcher."""
    token_hook = TokenDeploymentHook(deployments)
    uniswap_hook = UniswapDeploymentHook(uniswap)
    dispatcher.register(TransactionType.TOKEN_DEPLOYMENT, token_hook)
    dispatcher.register(TransactionType.UNISWAP_V2_WETH_DEPLOYMENT, token_hook)
    for transaction_type in _UNISWAP_ADDRESS_FIELDS:
        dispatcher.register(transaction_type, uniswap_hook)
    dispatcher.register(
        TransactionType.LIQUIDITY_POOL_CREATION,
        LiquidityPoolHook(pools=pools, uniswap=uniswap, verifier=verifier),
    )
