"""Error taxonomy for the signing session lifecycle."""


class TransactionError(Exception):
    """Base class for errors surfaced at the session boundary."""


class SessionNotFoundError(TransactionError):
    """Raised for unknown and expired sessions alike."""

    def __init__(self) -> None:
        super().__init__("Session not found")


class InvalidRequestError(TransactionError):
    """Raised for malformed requests; no state is mutated."""


class InvalidIndexError(InvalidRequestError):
    """Raised when a deployment index is outside the session."""

    def __init__(self, index: int) -> None:
        super().__init__(f"Invalid index: {index}")
        self.index = index


class SessionFailedError(InvalidRequestError):
    """Raised when confirming against a session that already failed."""

    def __init__(self) -> None:
        super().__init__("Session has failed and must be recreated")


class DeploymentNotReadyError(InvalidRequestError):
    """Raised when a step still waits for a predecessor's address."""

    def __init__(self, index: int) -> None:
        super().__init__(f"Transaction {index} is not ready to sign")
        self.index = index


class SignatureMismatchError(InvalidRequestError):
    """Raised when the signer does not own the submitted transaction."""


class TransactionNotMinedError(TransactionError):
    """Raised when the node has no receipt for the hash yet."""

    def __init__(self, transaction_hash: str) -> None:
        super().__init__(f"Transaction {transaction_hash} not found or not yet mined")
        self.transaction_hash = transaction_hash


class VerificationFailedError(TransactionError):
    """Raised when a transaction reverted or could not be classified."""


class StorageError(TransactionError):
    """Raised when the session store fails to read or write."""


class ConcurrentUpdateError(StorageError):
    """Raised when a versioned write keeps losing to concurrent writers."""
