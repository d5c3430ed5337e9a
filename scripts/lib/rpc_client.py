"""
JSON-RPC client for EVM chains with transport-level retry handling.

This module provides one client per chain, cached in an explicit pool owned
by a polling run. Only transport failures (connection errors, timeouts,
HTTP 429/5xx) are retried; JSON-RPC errors such as reverts are raised
immediately.
"""

import re
import time
from http.cookiejar import DefaultCookiePolicy
from typing import Any, Callable, Dict, Optional

import requests

from .chains import ChainDescriptor


# Retry configuration
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0  # seconds
DEFAULT_TIMEOUT = 30.0  # seconds

# balanceOf(address)
BALANCE_OF_SELECTOR = "0x70a08231"

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class RpcError(Exception):
    """Exception raised for RPC failures after retries are exhausted."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def encode_balance_of(owner: str) -> str:
    """
    Encode calldata for ``balanceOf(owner)``.

    Raises:
        RpcError: If owner is not a 20-byte hex address
    """
    if not _ADDRESS_RE.match(owner):
        raise RpcError(f"Invalid address: {owner}")
    return BALANCE_OF_SELECTOR + owner[2:].lower().rjust(64, "0")


def decode_uint256(result: Any) -> int:
    """
    Decode a hex quantity or uint256 return value.

    Raises:
        RpcError: If the value is empty or not hex
    """
    if not isinstance(result, str) or result in ("", "0x"):
        raise RpcError(f"Call returned no data: {result!r}")
    try:
        return int(result, 16)
    except ValueError as e:
        raise RpcError(f"Malformed result: {result!r}") from e


class RpcClient:
    """
    JSON-RPC client bound to a single chain endpoint.

    Requests are sent with caching disabled and without cookies.
    """

    def __init__(
        self,
        chain: ChainDescriptor,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the client.

        Args:
            chain: Chain whose RPC endpoint is queried
            max_retries: Retries after the first attempt for transport failures
            retry_delay: Seconds to wait between attempts
            timeout: Per-request timeout in seconds
        """
        self.chain = chain
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Cache-Control": "no-store", "Pragma": "no-cache"})
        self.session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
        self._request_id = 0

    def close(self) -> None:
        self.session.close()

    def _execute_with_retry(
        self,
        request_func: Callable[[], requests.Response],
    ) -> requests.Response:
        """
        Execute a request function, retrying transport-level failures.

        Args:
            request_func: A callable that returns a requests.Response

        Returns:
            The successful response

        Raises:
            RpcError: When the request fails after all retries
        """
        last_error = "Max retries exceeded"
        last_status: Optional[int] = None

        for attempt in range(self.max_retries + 1):
            if attempt > 0 and self.retry_delay > 0:
                time.sleep(self.retry_delay)

            try:
                response = request_func()
            except requests.RequestException as e:
                last_error = f"Request failed: {e}"
                last_status = None
                continue

            if response.status_code == 429 or response.status_code >= 500:
                last_error = f"HTTP {response.status_code} from {self.chain.name} RPC"
                last_status = response.status_code
                continue

            if response.status_code >= 400:
                raise RpcError(
                    f"HTTP {response.status_code} from {self.chain.name} RPC",
                    status_code=response.status_code,
                )

            return response

        raise RpcError(last_error, status_code=last_status)

    def _request(self, method: str, params: Any) -> Any:
        """
        Make a JSON-RPC request.

        Args:
            method: JSON-RPC method name
            params: Method parameters

        Returns:
            The 'result' field from the JSON-RPC response

        Raises:
            RpcError: For transport failures after retries, or JSON-RPC errors
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": self._request_id,
        }

        response = self._execute_with_retry(
            lambda: self.session.post(self.chain.rpc_url, json=payload, timeout=self.timeout)
        )
        try:
            data = response.json()
        except ValueError as e:
            raise RpcError(f"Invalid JSON from {self.chain.name} RPC") from e

        if not isinstance(data, dict):
            raise RpcError(f"Unexpected response from {self.chain.name} RPC")

        if data.get("error"):
            error = data["error"]
            if isinstance(error, dict):
                raise RpcError(
                    f"RPC error: {error.get('message', str(error))}",
                    status_code=error.get("code"),
                )
            raise RpcError(f"RPC error: {error}")

        return data.get("result")

    def get_balance(self, address: str) -> int:
        """
        Get the native balance of an address.

        Returns:
            Balance in the smallest unit (wei)
        """
        return decode_uint256(self._request("eth_getBalance", [address, "latest"]))

    def call(self, to: str, data: str) -> str:
        """Execute a read-only contract call and return the raw hex result."""
        return self._request("eth_call", [{"to": to, "data": data}, "latest"])

    def balance_of(self, token: str, owner: str) -> int:
        """
        Read ``balanceOf(owner)`` on an ERC-20 contract.

        Returns:
            Balance in the token's smallest unit
        """
        return decode_uint256(self.call(token, encode_balance_of(owner)))


class RpcClientPool:
    """Lazily created RPC clients, one per chain id, kept for the pool's lifetime."""

    def __init__(self, client_factory: Optional[Callable[[ChainDescriptor], RpcClient]] = None):
        self._client_factory = client_factory or RpcClient
        self._clients: Dict[int, RpcClient] = {}

    def get_client(self, chain: ChainDescriptor) -> RpcClient:
        if chain.id not in self._clients:
            self._clients[chain.id] = self._client_factory(chain)
        return self._clients[chain.id]

    def __len__(self) -> int:
        return len(self._clients)

    def close(self) -> None:
        for client in self._clients.values():
            client.close()
        self._clients.clear()
