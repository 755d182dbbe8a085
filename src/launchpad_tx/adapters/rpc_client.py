"""Ethereum JSON-RPC client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

PARSE_ERROR = -32700


class RpcError(Exception):
    """Raised when the node answers with a JSON-RPC error object."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message


class RpcClient(Protocol):
    """Interface for JSON-RPC calls against a node endpoint."""

    async def call(
        self, rpc_url: str, method: str, params: list[object]
    ) -> object | None:
        """Invoke a method and return its raw result."""


@dataclass
class HttpxRpcClient(RpcClient):
    """HTTPX-backed JSON-RPC client."""

    http_client: httpx.AsyncClient
    timeout: float = 15

    @classmethod
    def create(cls, timeout: float = 15) -> "HttpxRpcClient":
        """Create an RPC client with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient(), timeout=timeout)

    async def call(
        self, rpc_url: str, method: str, params: list[object]
    ) -> object | None:
        """Invoke a method and return its result field."""
        response = await self.http_client.post(
            rpc_url,
            json={"jsonrpc": "2.0", "method": method, "params": params, "id": 1},
            timeout=self.timeout,
        )
        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as exc:
            raise RpcError(PARSE_ERROR, f"Invalid JSON from node: {exc}") from exc
        if not isinstance(payload, dict):
            raise RpcError(PARSE_ERROR, "Node response is not a JSON-RPC object")
        error = payload.get("error")
        if isinstance(error, dict):
            raise RpcError(int(error.get("code", 0)), str(error.get("message", "")))
        if error:
            raise RpcError(0, str(error))
        return payload.get("result")

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
