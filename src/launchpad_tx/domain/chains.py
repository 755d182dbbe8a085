"""Domain models for chain configuration."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ChainConfig:
    """Resolved chain: where to reach its node and which network it is."""

    id: int
    name: str
    chain_type: str
    rpc_url: str
    network_id: str
