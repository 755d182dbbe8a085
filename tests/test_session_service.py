"""Tests for the session lifecycle and confirmation protocol."""

import asyncio
from dataclasses import replace
from uuid import uuid4

import pytest

from launchpad_tx.domain.errors import (
    ConcurrentUpdateError,
    DeploymentNotReadyError,
    InvalidIndexError,
    InvalidRequestError,
    SessionFailedError,
    SessionNotFoundError,
    TransactionNotMinedError,
    VerificationFailedError,
)
from launchpad_tx.domain.transactions import (
    AddressSlot,
    ContractBuild,
    MetadataEntry,
    TransactionDeployment,
    TransactionStatus,
    TransactionType,
    mark_confirmed,
)
from launchpad_tx.services.hooks import ConfirmedTransaction
from tests.conftest import (
    CHAIN_ID,
    call_deployment,
    contract_address,
    receipt,
    tx_hash,
)


def _two_step_session(session_service):
    return session_service.create_session(
        CHAIN_ID,
        [call_deployment("First"), call_deployment("Second")],
        [MetadataEntry("deployment_id", "42")],
    )


def test_create_session_sets_pending_and_ttl(session_service, clock) -> None:
    session = _two_step_session(session_service)

    assert session.status is TransactionStatus.PENDING
    assert all(d.status is TransactionStatus.PENDING for d in session.deployments)
    assert session.expires_at == clock.now + session_service.ttl
    assert session.metadata_value("deployment_id") == "42"
    assert session.signing_path == f"/tx/{session.id}"


def test_create_session_rejects_empty_deployments(session_service) -> None:
    with pytest.raises(InvalidRequestError):
        session_service.create_session(CHAIN_ID, [], [])


def test_create_session_rejects_unknown_chain(session_service) -> None:
    with pytest.raises(InvalidRequestError):
        session_service.create_session(999, [call_deployment()], [])


def test_create_session_rejects_unproduced_dependency(session_service) -> None:
    router = TransactionDeployment(
        title="Router",
        description="",
        transaction_type=TransactionType.UNISWAP_V2_ROUTER_DEPLOYMENT,
        build=ContractBuild(
            bytecode="0x60",
            argument_types=("address",),
            arguments=(AddressSlot("factory"),),
        ),
    )

    with pytest.raises(InvalidRequestError):
        session_service.create_session(CHAIN_ID, [router], [])


def test_get_session_unknown_id(session_service) -> None:
    with pytest.raises(SessionNotFoundError):
        session_service.get_session(uuid4())


def test_expired_session_is_not_found(session_service, clock) -> None:
    session = _two_step_session(session_service)
    clock.advance(31)

    with pytest.raises(SessionNotFoundError):
        session_service.get_session(session.id)


def test_expired_session_rejects_confirmation(
    session_service, session_repository, rpc_client, clock
) -> None:
    session = _two_step_session(session_service)
    rpc_client.receipts[tx_hash(1)] = receipt(tx_hash(1))
    clock.advance(31)

    with pytest.raises(SessionNotFoundError):
        asyncio.run(session_service.confirm_deployment(session.id, 0, tx_hash(1)))

    assert session_repository.sessions[session.id] == session
    assert rpc_client.calls == []


def test_partial_then_total_confirmation(session_service, rpc_client) -> None:
    session = _two_step_session(session_service)
    rpc_client.receipts[tx_hash(1)] = receipt(tx_hash(1))
    rpc_client.receipts[tx_hash(2)] = receipt(tx_hash(2))

    first = asyncio.run(session_service.confirm_deployment(session.id, 0, tx_hash(1)))

    assert first.status is TransactionStatus.PENDING
    assert first.deployments[0].status is TransactionStatus.CONFIRMED
    assert first.deployments[0].transaction_hash == tx_hash(1)
    assert first.deployments[1].status is TransactionStatus.PENDING

    second = asyncio.run(session_service.confirm_deployment(session.id, 1, tx_hash(2)))

    assert second.status is TransactionStatus.CONFIRMED
    assert session_service.get_session(session.id).status is TransactionStatus.CONFIRMED


def test_reverted_transaction_fails_session(
    session_service, session_repository, rpc_client
) -> None:
    session = _two_step_session(session_service)
    rpc_client.receipts[tx_hash(1)] = receipt(tx_hash(1), status="0x0")

    with pytest.raises(VerificationFailedError):
        asyncio.run(session_service.confirm_deployment(session.id, 0, tx_hash(1)))

    stored = session_repository.sessions[session.id]
    assert stored.status is TransactionStatus.FAILED
    assert stored.deployments[0].status is not TransactionStatus.CONFIRMED
    assert stored.deployments[1].status is TransactionStatus.PENDING


def test_failed_session_rejects_later_confirmations(session_service, rpc_client) -> None:
    session = _two_step_session(session_service)
    rpc_client.receipts[tx_hash(1)] = receipt(tx_hash(1), status="0x0")
    rpc_client.receipts[tx_hash(2)] = receipt(tx_hash(2))

    with pytest.raises(VerificationFailedError):
        asyncio.run(session_service.confirm_deployment(session.id, 0, tx_hash(1)))
    with pytest.raises(SessionFailedError):
        asyncio.run(session_service.confirm_deployment(session.id, 1, tx_hash(2)))


def test_rpc_timeout_fails_session(session_service, session_repository, rpc_client) -> None:
    session = _two_step_session(session_service)
    rpc_client.delay = 5

    with pytest.raises(VerificationFailedError):
        asyncio.run(session_service.confirm_deployment(session.id, 0, tx_hash(1)))

    assert session_repository.sessions[session.id].status is TransactionStatus.FAILED


def test_unmined_transaction_leaves_session_untouched(
    session_service, session_repository
) -> None:
    session = _two_step_session(session_service)

    with pytest.raises(TransactionNotMinedError):
        asyncio.run(session_service.confirm_deployment(session.id, 0, tx_hash(1)))

    assert session_repository.sessions[session.id] == session
    assert session_repository.writes == 0


def test_out_of_range_index_mutates_nothing(
    session_service, session_repository, rpc_client
) -> None:
    session = session_service.create_session(CHAIN_ID, [call_deployment()], [])

    with pytest.raises(InvalidIndexError):
        asyncio.run(session_service.confirm_deployment(session.id, 5, tx_hash(1)))

    assert session_repository.sessions[session.id] == session
    assert rpc_client.calls == []


def test_unknown_session_mutates_nothing(session_service, session_repository) -> None:
    with pytest.raises(SessionNotFoundError):
        asyncio.run(session_service.confirm_deployment(uuid4(), 0, tx_hash(1)))

    assert session_repository.sessions == {}


def test_reconfirmation_is_a_noop(
    session_service, session_repository, rpc_client, hook_dispatcher
) -> None:
    events: list[ConfirmedTransaction] = []

    async def record(event: ConfirmedTransaction) -> None:
        events.append(event)

    hook_dispatcher.register(TransactionType.TOKEN_DEPLOYMENT, record)
    session = _two_step_session(session_service)
    rpc_client.receipts[tx_hash(1)] = receipt(tx_hash(1))

    first = asyncio.run(session_service.confirm_deployment(session.id, 0, tx_hash(1)))
    calls_after_first = len(rpc_client.calls)
    again = asyncio.run(session_service.confirm_deployment(session.id, 0, tx_hash(1)))

    assert again == first
    assert len(rpc_client.calls) == calls_after_first
    assert session_repository.writes == 1
    assert len(events) == 1


def test_hooks_receive_post_update_snapshot(
    session_service, rpc_client, hook_dispatcher
) -> None:
    events: list[ConfirmedTransaction] = []

    async def record(event: ConfirmedTransaction) -> None:
        events.append(event)

    hook_dispatcher.register(TransactionType.TOKEN_DEPLOYMENT, record)
    session = session_service.create_session(CHAIN_ID, [call_deployment()], [])
    rpc_client.receipts[tx_hash(1)] = receipt(tx_hash(1), address=contract_address(7))

    asyncio.run(
        session_service.confirm_deployment(
            session.id, 0, tx_hash(1), contract_address=contract_address(9)
        )
    )

    assert len(events) == 1
    assert events[0].contract_address == contract_address(7)
    assert events[0].session.status is TransactionStatus.CONFIRMED


def test_hook_failure_does_not_undo_confirmation(
    session_service, rpc_client, hook_dispatcher
) -> None:
    async def broken(event: ConfirmedTransaction) -> None:
        raise RuntimeError("boom")

    hook_dispatcher.register(TransactionType.TOKEN_DEPLOYMENT, broken)
    session = session_service.create_session(CHAIN_ID, [call_deployment()], [])
    rpc_client.receipts[tx_hash(1)] = receipt(tx_hash(1))

    updated = asyncio.run(session_service.confirm_deployment(session.id, 0, tx_hash(1)))

    assert updated.status is TransactionStatus.CONFIRMED
    assert session_service.get_session(session.id).status is TransactionStatus.CONFIRMED


def test_concurrent_confirmations_do_not_lose_updates(
    session_service, rpc_client
) -> None:
    session = _two_step_session(session_service)
    rpc_client.receipts[tx_hash(1)] = receipt(tx_hash(1))
    rpc_client.receipts[tx_hash(2)] = receipt(tx_hash(2))
    rpc_client.delay = 0.01

    async def confirm_both():
        return await asyncio.gather(
            session_service.confirm_deployment(session.id, 0, tx_hash(1)),
            session_service.confirm_deployment(session.id, 1, tx_hash(2)),
        )

    asyncio.run(confirm_both())

    stored = session_service.get_session(session.id)
    assert [d.status for d in stored.deployments] == [
        TransactionStatus.CONFIRMED,
        TransactionStatus.CONFIRMED,
    ]
    assert stored.status is TransactionStatus.CONFIRMED


def test_version_conflict_is_retried(
    session_service, session_repository, rpc_client
) -> None:
    session = _two_step_session(session_service)
    rpc_client.receipts[tx_hash(1)] = receipt(tx_hash(1))
    session_repository.conflicts_to_inject = 1

    updated = asyncio.run(session_service.confirm_deployment(session.id, 0, tx_hash(1)))

    assert updated.deployments[0].status is TransactionStatus.CONFIRMED
    assert session_repository.sessions[session.id] == updated


def test_persistent_conflicts_raise(
    session_service, session_repository, rpc_client
) -> None:
    session = _two_step_session(session_service)
    rpc_client.receipts[tx_hash(1)] = receipt(tx_hash(1))
    session_repository.conflicts_to_inject = 10

    with pytest.raises(ConcurrentUpdateError):
        asyncio.run(session_service.confirm_deployment(session.id, 0, tx_hash(1)))


def test_dependent_step_cannot_be_confirmed_early(session_service, rpc_client) -> None:
    deployments = [
        TransactionDeployment(
            title="Factory",
            description="",
            transaction_type=TransactionType.UNISWAP_V2_FACTORY_DEPLOYMENT,
            build=ContractBuild(bytecode="0x60", produces="factory"),
        ),
        TransactionDeployment(
            title="Router",
            description="",
            transaction_type=TransactionType.UNISWAP_V2_ROUTER_DEPLOYMENT,
            build=ContractBuild(
                bytecode="0x61",
                argument_types=("address",),
                arguments=(AddressSlot("factory"),),
            ),
        ),
    ]
    session = session_service.create_session(CHAIN_ID, deployments, [])
    rpc_client.receipts[tx_hash(2)] = receipt(tx_hash(2))

    with pytest.raises(DeploymentNotReadyError):
        asyncio.run(session_service.confirm_deployment(session.id, 1, tx_hash(2)))


def test_failed_session_stays_failed_when_confirming(session_service) -> None:
    session = _two_step_session(session_service)
    failed = replace(session, status=TransactionStatus.FAILED)

    assert mark_confirmed(failed, 0, tx_hash(1), None) == failed


def test_confirmation_lost_to_concurrent_failure(
    session_service, session_repository, rpc_client
) -> None:
    session = _two_step_session(session_service)
    rpc_client.receipts[tx_hash(1)] = receipt(tx_hash(1))
    session_repository.conflicts_to_inject = 1
    original_save = session_repository.save_session

    def fail_then_save(updated, expected_version):
        stored = session_repository.sessions[updated.id]
        if session_repository.conflicts_to_inject:
            session_repository.sessions[updated.id] = replace(
                stored, status=TransactionStatus.FAILED
            )
        return original_save(updated, expected_version)

    session_repository.save_session = fail_then_save

    with pytest.raises(SessionFailedError):
        asyncio.run(session_service.confirm_deployment(session.id, 0, tx_hash(1)))

    stored = session_repository.sessions[session.id]
    assert stored.status is TransactionStatus.FAILED
    assert stored.deployments[0].status is TransactionStatus.PENDING
