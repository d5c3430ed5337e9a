"""
Token catalog client.

Fetches the list of token contracts to probe for a chain. A failed fetch is
recorded as an error and treated as an empty catalog.
"""

from typing import Any, List, Optional

import requests

from .models import NOT_APPLICABLE, ErrorRecord, TokenDescriptor
from .output_sink import ErrorCollector


DEFAULT_CATALOG_URL = "https://tradeapi.pandaterminal.com"
DEFAULT_TIMEOUT = 30.0  # seconds


def parse_token_list(payload: Any) -> List[TokenDescriptor]:
    """
    Extract token descriptors from a catalog response body.

    Any shape other than ``{"data": [...]}`` yields an empty list.
    """
    if not isinstance(payload, dict):
        return []
    entries = payload.get("data")
    if not isinstance(entries, list):
        return []

    tokens: List[TokenDescriptor] = []
    for entry in entries:
        token = TokenDescriptor.from_catalog_entry(entry)
        if token is not None:
            tokens.append(token)
    return tokens


class TokenCatalogClient:
    """Client for the ``/dex/guest/tokenlist/{chainId}`` endpoint."""

    def __init__(
        self,
        auth_token: str,
        errors: ErrorCollector,
        base_url: str = DEFAULT_CATALOG_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.auth_token = auth_token
        self.errors = errors
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _sanitize_error_message(self, message: str) -> str:
        """Remove the bearer token from error messages to prevent credential leakage."""
        if not self.auth_token:
            return message
        return message.replace(self.auth_token, "[REDACTED]")

    def token_list_url(self, chain_id: int) -> str:
        return f"{self.base_url}/dex/guest/tokenlist/{chain_id}"

    def fetch_token_list(self, chain_id: int) -> List[TokenDescriptor]:
        """
        Fetch the token catalog for a chain.

        Args:
            chain_id: Numeric chain identifier

        Returns:
            Token descriptors in catalog order, or an empty list on failure
        """
        try:
            response = self.session.get(
                self.token_list_url(chain_id),
                headers={"authorization": f"Bearer {self.auth_token}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return parse_token_list(response.json())
        except (requests.RequestException, ValueError) as e:
            self.errors.record(
                ErrorRecord(
                    chain=str(chain_id),
                    token=NOT_APPLICABLE,
                    token_address=NOT_APPLICABLE,
                    wallet_address=NOT_APPLICABLE,
                    operation="fetchTokenList",
                    error=self._sanitize_error_message(str(e)),
                )
            )
            return []
