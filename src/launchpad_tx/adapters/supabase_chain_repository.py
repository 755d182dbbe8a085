"""Supabase-backed chain repository."""

from dataclasses import dataclass

from supabase import Client

from launchpad_tx.domain.chains import ChainConfig
from launchpad_tx.services.chains import ChainRepository


@dataclass
class SupabaseChainRepository(ChainRepository):
    """Supabase implementation for chain configuration."""

    client: Client

    def get_chain(self, chain_id: int) -> ChainConfig | None:
        """Return a chain by id, if present."""
        response = (
            self.client.table("chains")
            .select("id, name, chain_type, rpc, chain_id")
            .eq("id", chain_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return ChainConfig(
            id=int(row["id"]),
            name=row["name"],
            chain_type=row["chain_type"],
            rpc_url=row["rpc"],
            network_id=str(row["chain_id"]),
        )
