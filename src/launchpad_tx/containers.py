"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from supabase import create_client

from launchpad_tx.adapters.rpc_client import HttpxRpcClient
from launchpad_tx.adapters.supabase_chain_repository import SupabaseChainRepository
from launchpad_tx.adapters.supabase_hook_repositories import (
    SupabaseDeploymentRecordRepository,
    SupabaseLiquidityPoolRepository,
    SupabaseUniswapDeploymentRepository,
)
from launchpad_tx.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from launchpad_tx.config import Settings
from launchpad_tx.services.chains import ChainRegistry
from launchpad_tx.services.deployment_hooks import register_deployment_hooks
from launchpad_tx.services.hooks import HookDispatcher
from launchpad_tx.services.orchestrator import DeploymentOrchestrator
from launchpad_tx.services.sessions import SessionService
from launchpad_tx.services.verification import TransactionVerifier


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    chain_registry: ChainRegistry
    verifier: TransactionVerifier
    hook_dispatcher: HookDispatcher
    session_service: SessionService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    chain_registry = ChainRegistry(SupabaseChainRepository(supabase_client))
    rpc_client = HttpxRpcClient.create(timeout=resolved_settings.rpc_timeout_seconds)
    verifier = TransactionVerifier(
        rpc_client=rpc_client,
        chain_registry=chain_registry,
        timeout_seconds=resolved_settings.rpc_timeout_seconds,
    )
    hook_dispatcher = HookDispatcher()
    register_deployment_hooks(
        hook_dispatcher,
        deployments=SupabaseDeploymentRecordRepository(supabase_client),
        uniswap=SupabaseUniswapDeploymentRepository(supabase_client),
        pools=SupabaseLiquidityPoolRepository(supabase_client),
        verifier=verifier,
    )
    session_service = SessionService(
        session_repository=SupabaseSessionRepository(supabase_client),
        chain_registry=chain_registry,
        verifier=verifier,
        hook_dispatcher=hook_dispatcher,
        orchestrator=DeploymentOrchestrator(),
        ttl=timedelta(minutes=resolved_settings.session_ttl_minutes),
        require_signature=resolved_settings.require_wallet_signature,
    )

    async def close_resources() -> None:
        await rpc_client.close()

    return AppContainer(
        settings=resolved_settings,
        chain_registry=chain_registry,
        verifier=verifier,
        hook_dispatcher=hook_dispatcher,
        session_service=session_service,
        close_resources=close_resources,
    )
