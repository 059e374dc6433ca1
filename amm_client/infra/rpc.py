"""
Solana JSON-RPC transport

AmmClient only ever reads single accounts, so the transport is built around
getAccountInfo: a missing account comes back as None, and account data is
decoded from base64 before it leaves this module. Retry, endpoint fallback
and timeout policy live here and nowhere else in the package.
"""

from __future__ import annotations

import base64
import itertools
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import httpx

from ..config import config as global_config
from ..errors import ConfigurationError, ErrorCode, RpcError

logger = logging.getLogger(__name__)


@dataclass
class RpcClientConfig:
    """
    Per-client transport settings

    Unset values come from the global config (amm_client.config.RpcConfig).

    Usage:
        client = RpcClient(endpoint, RpcClientConfig(timeout_seconds=60, max_retries=5))
    """
    timeout_seconds: float = None
    max_retries: int = None
    retry_delay_seconds: float = None
    commitment: str = None

    def __post_init__(self):
        rpc = global_config.rpc
        if self.timeout_seconds is None:
            self.timeout_seconds = rpc.timeout_seconds
        if self.max_retries is None:
            self.max_retries = rpc.max_retries
        if self.retry_delay_seconds is None:
            self.retry_delay_seconds = rpc.retry_delay_seconds
        if self.commitment is None:
            self.commitment = rpc.commitment
        if self.max_retries < 1:
            raise ConfigurationError.invalid("max_retries", f"must be >= 1, got {self.max_retries}")


@dataclass(frozen=True)
class AccountInfo:
    """Decoded getAccountInfo value"""
    address: str
    owner: str
    lamports: int
    data: bytes
    executable: bool = False

    @classmethod
    def from_rpc(cls, address: str, value: Dict[str, Any]) -> "AccountInfo":
        """
        Build from a base64-encoded RPC value

        Nodes return data either as [b64, "base64"] or as a bare string.
        """
        raw = value.get("data") or ""
        if isinstance(raw, list):
            raw = raw[0] if raw else ""
        return cls(
            address=address,
            owner=value.get("owner", ""),
            lamports=value.get("lamports", 0),
            data=base64.b64decode(raw),
            executable=bool(value.get("executable", False)),
        )


class RpcClient:
    """
    Blocking Solana RPC client

    Each endpoint gets max_retries attempts before the client moves on to
    the next one. Timeouts, connection errors, HTTP errors, 429s and
    non-JSON bodies are retried; a JSON-RPC error from the node is not.

    Usage:
        rpc = RpcClient(["https://primary.example.com", "https://backup.example.com"])
        account = rpc.get_account_info(pool_address)
        if account is None:
            ...
    """

    def __init__(
        self,
        endpoint: Union[str, List[str]],
        config: Optional[RpcClientConfig] = None,
    ):
        endpoints = [endpoint] if isinstance(endpoint, str) else list(endpoint)
        self._endpoints = [e for e in endpoints if e]
        if not self._endpoints:
            raise ConfigurationError.missing("RPC endpoint")

        self._config = config or RpcClientConfig()
        self._endpoint_idx = 0
        self._request_ids = itertools.count(1)
        self._client: Optional[httpx.Client] = None
        self._client_lock = threading.Lock()

    @property
    def endpoint(self) -> str:
        """Endpoint the next request goes to"""
        return self._endpoints[self._endpoint_idx]

    @property
    def commitment(self) -> str:
        return self._config.commitment

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = httpx.Client(
                        timeout=self._config.timeout_seconds,
                        headers={"Content-Type": "application/json"},
                    )
        return self._client

    def _attempts(self) -> Iterator[Tuple[int, str]]:
        """Yield (attempt, endpoint), moving to the next endpoint when retries run out"""
        for _ in range(len(self._endpoints)):
            for attempt in range(self._config.max_retries):
                yield attempt, self.endpoint
            if len(self._endpoints) > 1:
                self._endpoint_idx = (self._endpoint_idx + 1) % len(self._endpoints)
                logger.info(f"Switching RPC endpoint to {self.endpoint}")

    def _send(self, endpoint: str, body: Dict[str, Any], timeout: float) -> Any:
        """
        One POST to one endpoint

        Raises:
            RpcError: recoverable for transport failures, not recoverable
                for a JSON-RPC error answered by the node
        """
        try:
            response = self._get_client().post(endpoint, json=body, timeout=timeout)
            if response.status_code == 429:
                raise RpcError.rate_limited(endpoint)
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException:
            raise RpcError.timeout(endpoint, timeout)
        except httpx.HTTPStatusError as e:
            raise RpcError(f"HTTP error {e.response.status_code}", endpoint=endpoint, original_error=e)
        except httpx.RequestError as e:
            raise RpcError.connection_failed(endpoint, e)
        except ValueError as e:
            raise RpcError(
                f"Invalid JSON-RPC response: {e}",
                ErrorCode.RPC_INVALID_RESPONSE,
                endpoint=endpoint,
                original_error=e,
            )

        if "error" in payload:
            error = payload["error"]
            rpc_error = RpcError(f"RPC error: {error.get('message', str(error))}", endpoint=endpoint)
            rpc_error.recoverable = False
            rpc_error.details["rpc_error_code"] = error.get("code")
            rpc_error.details["rpc_error_data"] = error.get("data")
            raise rpc_error
        return payload.get("result")

    def call(self, method: str, params: List[Any], timeout: Optional[float] = None) -> Any:
        """
        Make a JSON-RPC call with retries and endpoint fallback

        Returns:
            The "result" member of the response

        Raises:
            RpcError: Node returned an error, or every attempt failed
        """
        timeout = timeout or self._config.timeout_seconds
        body = {"jsonrpc": "2.0", "id": next(self._request_ids), "method": method, "params": params}

        last_error: Optional[RpcError] = None
        for attempt, endpoint in self._attempts():
            try:
                return self._send(endpoint, body, timeout)
            except RpcError as e:
                if not e.recoverable:
                    raise
                last_error = e
                logger.warning(f"{method} failed on {endpoint} (attempt {attempt + 1}): {e.message}")
            if attempt < self._config.max_retries - 1:
                time.sleep(self._config.retry_delay_seconds * (attempt + 1))

        raise last_error or RpcError("All RPC endpoints failed")

    def get_account_info(self, address: str, commitment: Optional[str] = None) -> Optional[AccountInfo]:
        """
        Fetch one account

        Returns:
            AccountInfo, or None if the account does not exist
        """
        address = str(address)
        result = self.call(
            "getAccountInfo",
            [address, {"encoding": "base64", "commitment": commitment or self.commitment}],
        )
        value = result.get("value") if result else None
        if value is None:
            logger.debug(f"Account {address} not found")
            return None
        return AccountInfo.from_rpc(address, value)

    def close(self):
        """Close the pooled HTTP client"""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
