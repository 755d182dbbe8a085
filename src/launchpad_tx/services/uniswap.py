"""Uniswap V2 infrastructure deployment plan."""

from dataclasses import dataclass

from launchpad_tx.domain.transactions import (
    ZERO_ADDRESS,
    AddressSlot,
    ContractBuild,
    TransactionDeployment,
    TransactionType,
)

WETH_SLOT = "weth"
FACTORY_SLOT = "factory"
ROUTER_SLOT = "router"


@dataclass(frozen=True)
class UniswapV2Artifacts:
    """Compiled creation bytecode for the V2 contracts."""

    weth_bytecode: str
    factory_bytecode: str
    router_bytecode: str


def uniswap_v2_deployments(
    artifacts: UniswapV2Artifacts, fee_to_setter: str = ZERO_ADDRESS
) -> list[TransactionDeployment]:
    """Build WETH9 -> Factory -> Router, the router consuming both addresses."""
    return [
        TransactionDeployment(
            title="Deploy WETH9",
            description="Deploy Wrapped Ether (WETH9) contract for Uniswap V2",
            transaction_type=TransactionType.UNISWAP_V2_WETH_DEPLOYMENT,
            build=ContractBuild(bytecode=artifacts.weth_bytecode, produces=WETH_SLOT),
        ),
        TransactionDeployment(
            title="Deploy UniswapV2Factory",
            description="Deploy Uniswap V2 Factory contract",
            transaction_type=TransactionType.UNISWAP_V2_FACTORY_DEPLOYMENT,
            build=ContractBuild(
                bytecode=artifacts.factory_bytecode,
                argument_types=("address",),
                arguments=(fee_to_setter,),
                produces=FACTORY_SLOT,
            ),
        ),
        TransactionDeployment(
            title="Deploy UniswapV2Router02",
            description="Deploy Uniswap V2 Router contract",
            transaction_type=TransactionType.UNISWAP_V2_ROUTER_DEPLOYMENT,
            build=ContractBuild(
                bytecode=artifacts.router_bytecode,
                argument_types=("address", "address"),
                arguments=(AddressSlot(FACTORY_SLOT), AddressSlot(WETH_SLOT)),
                produces=ROUTER_SLOT,
            ),
        ),
    ]
