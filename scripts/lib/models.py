"""
Data models for wallet balance polling.

This module defines the token, balance and error records that flow from the
balance prober to the output files, plus the CSV column orders used for them.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional


# CSV column order for balance output
BALANCE_CSV_COLUMNS = [
    "address",
    "chain",
    "tokenType",
    "symbol",
    "balance",
    "tokenAddress",
    "tokenName",
]

# CSV column order for the error log
ERROR_CSV_COLUMNS = [
    "chain",
    "token",
    "tokenAddress",
    "walletAddress",
    "operation",
    "error",
]

NATIVE_TOKEN_ADDRESS = "native"
NOT_APPLICABLE = "N/A"
DEFAULT_TOKEN_DECIMALS = 18
MAX_TOKEN_DECIMALS = 255


def format_decimal(value: Decimal) -> str:
    """
    Format a decimal balance as a plain string, trimming trailing zeros.

    Examples:
        format_decimal(Decimal("1.500")) -> "1.5"
        format_decimal(Decimal("0E-18")) -> "0"
    """
    if value == 0:
        return "0"

    formatted = format(value, "f")
    if "." in formatted:
        formatted = formatted.rstrip("0").rstrip(".")
    return formatted


@dataclass(frozen=True)
class TokenDescriptor:
    """A token contract listed by the catalog service for one chain."""

    address: str
    symbol: str
    name: str
    decimals: int = DEFAULT_TOKEN_DECIMALS

    @classmethod
    def from_catalog_entry(cls, entry: Dict[str, Any]) -> Optional["TokenDescriptor"]:
        """
        Build a descriptor from one catalog payload entry.

        Returns None when the entry is not an object or has no address.
        """
        if not isinstance(entry, dict):
            return None
        address = entry.get("address")
        if not address:
            return None

        decimals = entry.get("decimals")
        try:
            decimals = int(decimals) if decimals is not None else DEFAULT_TOKEN_DECIMALS
        except (TypeError, ValueError, OverflowError):
            decimals = DEFAULT_TOKEN_DECIMALS
        if not 0 <= decimals <= MAX_TOKEN_DECIMALS:
            decimals = DEFAULT_TOKEN_DECIMALS

        return cls(
            address=str(address),
            symbol=str(entry.get("symbol") or ""),
            name=str(entry.get("name") or ""),
            decimals=decimals,
        )


@dataclass(frozen=True)
class BalanceRecord:
    """
    One probe outcome for a (wallet, chain, asset) triple.

    A failed probe still produces a record: balance is zero and ``error``
    carries the failure message.
    """

    address: str
    chain: str
    token_type: str  # native or erc20
    symbol: str
    balance: Decimal
    token_address: str  # "native" for the chain's own currency
    token_name: str
    error: Optional[str] = None

    @property
    def is_non_zero(self) -> bool:
        return self.balance > 0

    def to_csv_row(self) -> List[str]:
        """Convert the record to a CSV row (list of strings)."""
        return [
            self.address,
            self.chain,
            self.token_type,
            self.symbol,
            format_decimal(self.balance),
            self.token_address,
            self.token_name,
        ]


@dataclass(frozen=True)
class ErrorRecord:
    """An absorbed failure, as written to the error CSV and JSON mirror."""

    chain: str
    token: str
    token_address: str
    wallet_address: str
    operation: str
    error: str

    def to_csv_row(self) -> List[str]:
        return [
            self.chain,
            self.token,
            self.token_address,
            self.wallet_address,
            self.operation,
            self.error,
        ]

    def to_dict(self) -> Dict[str, str]:
        return dict(zip(ERROR_CSV_COLUMNS, self.to_csv_row()))


@dataclass
class WalletResult:
    """Everything probed for one wallet across all chains."""

    address: str
    records: List[BalanceRecord] = field(default_factory=list)
    has_non_zero_balance: bool = False


@dataclass
class RunSummary:
    """Counters for a whole polling run."""

    wallets_found: int = 0
    wallets_processed: int = 0
    records_written: int = 0
    non_zero_records: int = 0
    errors_recorded: int = 0
    failed: bool = False
