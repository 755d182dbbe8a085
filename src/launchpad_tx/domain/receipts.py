"""Domain models for on-chain transaction receipts."""

from dataclasses import dataclass

RECEIPT_STATUS_SUCCESS = "0x1"


@dataclass(frozen=True)
class TransactionReceipt:
    """Subset of an Ethereum receipt used for verification."""

    transaction_hash: str
    block_number: str | None
    status: str | None
    contract_address: str | None
    from_address: str | None
    to_address: str | None
    gas_used: str | None

    @property
    def succeeded(self) -> bool:
        return self.status == RECEIPT_STATUS_SUCCESS

    @classmethod
    def from_rpc(cls, payload: dict[str, object]) -> "TransactionReceipt":
        """Build a receipt from an eth_getTransactionReceipt result."""

        def _text(key: str) -> str | None:
            value = payload.get(key)
            return str(value) if value is not None else None

        return cls(
            transaction_hash=str(payload.get("transactionHash", "")),
            block_number=_text("blockNumber"),
            status=_text("status"),
            contract_address=_text("contractAddress"),
            from_address=_text("from"),
            to_address=_text("to"),
            gas_used=_text("gasUsed"),
        )


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of checking a transaction against the chain."""

    success: bool
    receipt: TransactionReceipt
