"""Records updated by post-confirmation hooks."""

from dataclasses import dataclass


@dataclass(frozen=True)
class UniswapDeployment:
    """Uniswap infrastructure deployed on one chain."""

    id: int
    chain_id: int
    version: str
    status: str
    weth_address: str | None = None
    factory_address: str | None = None
    router_address: str | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.weth_address and self.factory_address and self.router_address)


@dataclass(frozen=True)
class LiquidityPool:
    """A liquidity pool awaiting its creation transaction."""

    id: int
    session_id: str
    status: str
    pair_address: str | None = None
    transaction_hash: str | None = None
