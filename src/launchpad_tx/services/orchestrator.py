"""Sequencing of dependent contract deployments."""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace

from eth_abi import encode

from launchpad_tx.domain.errors import InvalidRequestError
from launchpad_tx.domain.transactions import (
    AddressSlot,
    ContractBuild,
    TransactionDeployment,
    TransactionSession,
    TransactionStatus,
)

logger = logging.getLogger(__name__)


@dataclass
class DeploymentOrchestrator:
    """Prepares each step's payload once the addresses it consumes exist.

    A session advances awaiting[0] -> awaiting[1] -> ... -> done, one step per
    confirmed predecessor. Steps that consume no address are prepared as soon
    as the session is created. Once a session has failed nothing is prepared.
    """

    def validate(self, deployments: Sequence[TransactionDeployment]) -> None:
        """Reject dependency chains that cannot be satisfied in order."""
        produced: set[str] = set()
        for index, deployment in enumerate(deployments):
            build = deployment.build
            if build is None:
                if deployment.data is None:
                    raise InvalidRequestError(
                        f"Transaction {index} has neither data nor a contract build"
                    )
                continue
            if len(build.argument_types) != len(build.arguments):
                raise InvalidRequestError(
                    f"Transaction {index} has mismatched constructor arguments"
                )
            missing = [slot for slot in build.consumes if slot not in produced]
            if missing:
                raise InvalidRequestError(
                    f"Transaction {index} consumes {', '.join(missing)} "
                    "before an earlier step produces it"
                )
            if build.produces:
                if build.produces in produced:
                    raise InvalidRequestError(
                        f"Address slot {build.produces} is produced twice"
                    )
                produced.add(build.produces)

    def prepare(
        self,
        deployments: Sequence[TransactionDeployment],
        addresses: Mapping[str, str],
    ) -> tuple[TransactionDeployment, ...]:
        """Encode payloads for pending steps whose inputs are all known."""
        prepared = []
        for deployment in deployments:
            build = deployment.build
            if (
                build is not None
                and deployment.data is None
                and deployment.status is TransactionStatus.PENDING
                and all(slot in addresses for slot in build.consumes)
            ):
                deployment = replace(
                    deployment, data=encode_deployment(build, addresses)
                )
            prepared.append(deployment)
        return tuple(prepared)

    def advance(self, session: TransactionSession) -> TransactionSession:
        """Prepare the steps unlocked by the session's known addresses."""
        if session.status is not TransactionStatus.PENDING:
            return session
        deployments = self.prepare(session.deployments, session.addresses)
        for index, (before, after) in enumerate(
            zip(session.deployments, deployments, strict=True)
        ):
            if before.data is None and after.data is not None:
                logger.info("Session %s step %d is ready to sign", session.id, index)
        return replace(session, deployments=deployments)

    def next_step(self, session: TransactionSession) -> int | None:
        """Return the first step still awaiting confirmation."""
        for index, deployment in enumerate(session.deployments):
            if deployment.status is TransactionStatus.PENDING:
                return index
        return None


def encode_deployment(build: ContractBuild, addresses: Mapping[str, str]) -> str:
    """Append ABI-encoded constructor arguments to the creation bytecode."""
    arguments = [
        addresses[arg.name] if isinstance(arg, AddressSlot) else arg
        for arg in build.arguments
    ]
    bytecode = build.bytecode if build.bytecode.startswith("0x") else f"0x{build.bytecode}"
    if not build.argument_types:
        return bytecode
    return bytecode + encode(list(build.argument_types), arguments).hex()
