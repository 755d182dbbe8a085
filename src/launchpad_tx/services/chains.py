"""Chain resolution."""

from dataclasses import dataclass
from typing import Protocol

from launchpad_tx.domain.chains import ChainConfig


class ChainRepository(Protocol):
    """Persistence interface for chain configuration."""

    def get_chain(self, chain_id: int) -> ChainConfig | None:
        """Return a chain by id, if present."""


@dataclass
class ChainRegistry:
    """Resolves chain references to RPC endpoints."""

    repository: ChainRepository

    def resolve(self, chain_id: int) -> ChainConfig | None:
        """Return the chain configuration for an id, if known."""
        return self.repository.get_chain(chain_id)
