"""Supabase-backed repositories written to by confirmation hooks."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from launchpad_tx.domain.records import LiquidityPool, UniswapDeployment
from launchpad_tx.domain.transactions import TransactionStatus
from launchpad_tx.services.deployment_hooks import (
    DeploymentRecordRepository,
    LiquidityPoolRepository,
    UniswapDeploymentRepository,
)

_UNISWAP_COLUMNS = (
    "id, chain_id, version, status, weth_address, factory_address, router_address"
)
_ADDRESS_FIELDS = {"weth_address", "factory_address", "router_address"}


def _now() -> str:
    return datetime.now(tz=UTC).isoformat()


@dataclass
class SupabaseDeploymentRecordRepository(DeploymentRecordRepository):
    """Supabase implementation for template deployment records."""

    client: Client

    def confirm_deployment(self, transaction_hash: str, contract_address: str) -> None:
        """Mark the deployment with this hash confirmed."""
        self.client.table("deployments").update(
            {
                "contract_address": contract_address,
                "status": TransactionStatus.CONFIRMED.value,
                "updated_at": _now(),
            }
        ).eq("transaction_hash", transaction_hash).execute()


@dataclass
class SupabaseUniswapDeploymentRepository(UniswapDeploymentRepository):
    """Supabase implementation for Uniswap infrastructure records."""

    client: Client

    def get_by_chain(self, chain_id: int) -> UniswapDeployment | None:
        """Return the latest Uniswap deployment for a chain."""
        response = (
            self.client.table("uniswap_deployments")
            .select(_UNISWAP_COLUMNS)
            .eq("chain_id", chain_id)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _row_to_uniswap(response.data[0])

    def set_address(
        self, deployment_id: int, field: str, address: str
    ) -> UniswapDeployment:
        """Store one contract address and return the updated record."""
        if field not in _ADDRESS_FIELDS:
            raise ValueError(f"Unknown address field {field}")
        response = (
            self.client.table("uniswap_deployments")
            .update({field: address, "updated_at": _now()})
            .eq("id", deployment_id)
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Uniswap deployment {deployment_id} not found")
        return _row_to_uniswap(response.data[0])

    def update_status(self, deployment_id: int, status: str) -> None:
        """Update the deployment status."""
        self.client.table("uniswap_deployments").update(
            {"status": status, "updated_at": _now()}
        ).eq("id", deployment_id).execute()


@dataclass
class SupabaseLiquidityPoolRepository(LiquidityPoolRepository):
    """Supabase implementation for liquidity pools."""

    client: Client

    def get_by_session(self, session_id: str) -> LiquidityPool | None:
        """Return the pool created through a session."""
        response = (
            self.client.table("liquidity_pools")
            .select("id, session_id, status, pair_address, transaction_hash")
            .eq("session_id", session_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return LiquidityPool(
            id=int(row["id"]),
            session_id=row["session_id"],
            status=row["status"],
            pair_address=row.get("pair_address") or None,
            transaction_hash=row.get("transaction_hash") or None,
        )

    def confirm_pool(
        self, pool_id: int, pair_address: str, transaction_hash: str
    ) -> None:
        """Mark the pool confirmed with its pair address."""
        self.client.table("liquidity_pools").update(
            {
                "status": TransactionStatus.CONFIRMED.value,
                "pair_address": pair_address,
                "transaction_hash": transaction_hash,
                "updated_at": _now(),
            }
        ).eq("id", pool_id).execute()


def _row_to_uniswap(row: dict[str, object]) -> UniswapDeployment:
    return UniswapDeployment(
        id=int(row["id"]),
        chain_id=int(row["chain_id"]),
        version=str(row.get("version") or "v2"),
        status=str(row.get("status") or TransactionStatus.PENDING.value),
        weth_address=row.get("weth_address") or None,
        factory_address=row.get("factory_address") or None,
        router_address=row.get("router_address") or None,
    )
