"""Pydantic models for the transaction API."""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from launchpad_tx.domain.transactions import (
    ZERO_ADDRESS,
    AddressSlot,
    ContractBuild,
    MetadataEntry,
    TransactionDeployment,
    TransactionSession,
    TransactionStatus,
    TransactionType,
)
from launchpad_tx.services.uniswap import UniswapV2Artifacts, uniswap_v2_deployments


class TransactionCompleteRequest(BaseModel):
    """Body posted by the signing page after the wallet submits a transaction."""

    model_config = ConfigDict(populate_by_name=True)

    transaction_hash: str = Field(alias="transactionHash", min_length=1)
    status: TransactionStatus
    contract_address: str | None = Field(default=None, alias="contractAddress")
    signed_message: str = Field(default="", alias="signedMessage")
    signature: str = ""


class MetadataModel(BaseModel):
    key: str
    value: str


class ConstructorArgumentModel(BaseModel):
    """Either a literal value or a reference to an earlier step's address."""

    value: str | int | bool | None = None
    slot: str | None = None

    @model_validator(mode="after")
    def _one_of(self) -> "ConstructorArgumentModel":
        if (self.slot is None) == (self.value is None):
            raise ValueError("Exactly one of value or slot is required")
        return self


class ContractBuildModel(BaseModel):
    bytecode: str = Field(min_length=2)
    argument_types: list[str] = Field(default_factory=list)
    arguments: list[ConstructorArgumentModel] = Field(default_factory=list)
    produces: str | None = None


class DeploymentModel(BaseModel):
    title: str
    description: str = ""
    transaction_type: TransactionType
    data: str | None = None
    value: str = "0"
    receiver: str | None = None
    build: ContractBuildModel | None = None

    def to_domain(self) -> TransactionDeployment:
        build = None
        if self.build is not None:
            build = ContractBuild(
                bytecode=self.build.bytecode,
                argument_types=tuple(self.build.argument_types),
                arguments=tuple(
                    AddressSlot(arg.slot) if arg.slot is not None else arg.value
                    for arg in self.build.arguments
                ),
                produces=self.build.produces,
            )
        return TransactionDeployment(
            title=self.title,
            description=self.description,
            transaction_type=self.transaction_type,
            data=self.data,
            value=self.value,
            receiver=self.receiver,
            build=build,
        )


class UniswapV2PlanModel(BaseModel):
    """Compiled V2 bytecode; expands to the WETH9, Factory and Router steps."""

    weth_bytecode: str = Field(min_length=2)
    factory_bytecode: str = Field(min_length=2)
    router_bytecode: str = Field(min_length=2)
    fee_to_setter: str = ZERO_ADDRESS


class CreateSessionRequest(BaseModel):
    """Session creation request from deployment and liquidity tooling."""

    chain_id: int
    deployments: list[DeploymentModel] = Field(default_factory=list)
    uniswap_v2: UniswapV2PlanModel | None = None
    metadata: list[MetadataModel] = Field(default_factory=list)

    def to_deployments(self) -> list[TransactionDeployment]:
        """Infrastructure steps first, then the explicit deployments."""
        steps: list[TransactionDeployment] = []
        if self.uniswap_v2 is not None:
            plan = self.uniswap_v2
            steps.extend(
                uniswap_v2_deployments(
                    UniswapV2Artifacts(
                        weth_bytecode=plan.weth_bytecode,
                        factory_bytecode=plan.factory_bytecode,
                        router_bytecode=plan.router_bytecode,
                    ),
                    fee_to_setter=plan.fee_to_setter,
                )
            )
        steps.extend(deployment.to_domain() for deployment in self.deployments)
        return steps

    def metadata_entries(self) -> list[MetadataEntry]:
        return [MetadataEntry(key=item.key, value=item.value) for item in self.metadata]


def session_payload(
    session: TransactionSession, current_step: int | None
) -> dict[str, object]:
    """Serialize a session for the signing page.

    `current_step` is the first step still awaiting a signature, or None
    once every step is confirmed.
    """
    return {
        "id": str(session.id),
        "chain_id": session.chain_id,
        "status": session.status.value,
        "current_step": current_step,
        "metadata": [{"key": m.key, "value": m.value} for m in session.metadata],
        "transaction_deployments": [
            {
                "title": d.title,
                "description": d.description,
                "transaction_type": d.transaction_type.value,
                "data": d.data,
                "value": d.value,
                "receiver": d.receiver,
                "status": d.status.value,
                "ready": d.is_ready,
                "transaction_hash": d.transaction_hash,
                "contract_address": d.contract_address,
            }
            for d in session.deployments
        ],
        "created_at": session.created_at.isoformat(),
        "expires_at": session.expires_at.isoformat(),
    }
