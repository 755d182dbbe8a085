"""On-chain verification of submitted transactions."""

import asyncio
import logging
from dataclasses import dataclass

import httpx
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys.exceptions import BadSignature

from launchpad_tx.adapters.rpc_client import RpcClient, RpcError
from launchpad_tx.domain.chains import ChainConfig
from launchpad_tx.domain.errors import (
    SignatureMismatchError,
    TransactionNotMinedError,
    VerificationFailedError,
)
from launchpad_tx.domain.receipts import TransactionReceipt, VerificationResult
from launchpad_tx.services.chains import ChainRegistry

logger = logging.getLogger(__name__)


@dataclass
class TransactionVerifier:
    """Classifies transactions by querying the chain's node.

    Receipts are immutable once mined, so verifying the same hash twice
    yields the same classification and retries are always safe. A hash the
    node does not know yet raises TransactionNotMinedError, which callers
    must keep apart from a mined-but-reverted VerificationResult.
    """

    rpc_client: RpcClient
    chain_registry: ChainRegistry
    timeout_seconds: float = 15

    async def verify_transaction_success(
        self, transaction_hash: str, chain_id: int
    ) -> VerificationResult:
        """Fetch the receipt and classify success from its status field."""
        chain = self._resolve(chain_id)
        result = await self._call(chain, "eth_getTransactionReceipt", [transaction_hash])
        if result is None:
            raise TransactionNotMinedError(transaction_hash)
        if not isinstance(result, dict):
            raise VerificationFailedError("Malformed transaction receipt")
        receipt = TransactionReceipt.from_rpc(result)
        if receipt.succeeded:
            logger.info(
                "Transaction %s verified on chain %s (block: %s)",
                transaction_hash,
                chain.name,
                receipt.block_number,
            )
        return VerificationResult(success=receipt.succeeded, receipt=receipt)

    async def verify_sender_signature(
        self, transaction_hash: str, chain_id: int, message: str, signature: str
    ) -> None:
        """Ensure the personal_sign signature comes from the transaction sender."""
        if not message or not signature:
            raise SignatureMismatchError("Signed message and signature are required")
        chain = self._resolve(chain_id)
        result = await self._call(chain, "eth_getTransactionByHash", [transaction_hash])
        if result is None:
            raise TransactionNotMinedError(transaction_hash)
        sender = result.get("from") if isinstance(result, dict) else None
        if not isinstance(sender, str):
            raise VerificationFailedError("Transaction has no sender")
        try:
            signer = Account.recover_message(
                encode_defunct(text=message), signature=signature
            )
        except (BadSignature, ValueError) as exc:
            raise SignatureMismatchError(f"Invalid signature: {exc}") from exc
        if signer.lower() != sender.lower():
            raise SignatureMismatchError("Signature does not match transaction sender")

    async def call(self, chain_id: int, method: str, params: list[object]) -> object:
        """Run an arbitrary bounded RPC call against a chain."""
        return await self._call(self._resolve(chain_id), method, params)

    def _resolve(self, chain_id: int) -> ChainConfig:
        chain = self.chain_registry.resolve(chain_id)
        if chain is None:
            raise VerificationFailedError(f"Unknown chain {chain_id}")
        return chain

    async def _call(
        self, chain: ChainConfig, method: str, params: list[object]
    ) -> object | None:
        try:
            return await asyncio.wait_for(
                self.rpc_client.call(chain.rpc_url, method, params),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as exc:
            raise VerificationFailedError(
                f"{method} timed out after {self.timeout_seconds}s"
            ) from exc
        except (RpcError, httpx.HTTPError) as exc:
            raise VerificationFailedError(f"{method} failed: {exc}") from exc
