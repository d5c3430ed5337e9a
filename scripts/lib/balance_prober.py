"""
Balance probes for a single wallet on a single chain.

Each probe is isolated: an RPC failure is recorded in the error log and
turned into a zero-balance record instead of being raised, so one failing
token or chain never stops the remaining probes.
"""

from decimal import Decimal

from .chains import ChainDescriptor
from .models import (
    DEFAULT_TOKEN_DECIMALS,
    NATIVE_TOKEN_ADDRESS,
    BalanceRecord,
    ErrorRecord,
    TokenDescriptor,
)
from .output_sink import ErrorCollector
from .rpc_client import RpcClientPool, RpcError


def format_balance(raw_balance: int, decimals: int) -> Decimal:
    """
    Scale a smallest-unit integer balance to a decimal amount.

    Examples:
        format_balance(1500000, 6) -> Decimal("1.5")
        format_balance(0, 18) -> Decimal("0")
    """
    if raw_balance == 0:
        return Decimal(0)
    # Exact; Decimal division would round to the context precision.
    return Decimal(f"{raw_balance}e-{decimals}")


class BalanceProber:
    """Native and ERC-20 balance probes backed by a pool of RPC clients."""

    def __init__(self, pool: RpcClientPool, errors: ErrorCollector):
        self.pool = pool
        self.errors = errors

    def check_native_balance(self, address: str, chain: ChainDescriptor) -> BalanceRecord:
        """
        Probe the chain's native currency balance for a wallet.

        Args:
            address: Wallet address
            chain: Chain to query

        Returns:
            BalanceRecord; zero balance with ``error`` set if the probe failed
        """
        try:
            raw_balance = self.pool.get_client(chain).get_balance(address)
            balance = format_balance(raw_balance, chain.native_decimals)
            error = None
        except RpcError as e:
            self.errors.record(
                ErrorRecord(
                    chain=chain.name,
                    token=chain.native_symbol,
                    token_address=NATIVE_TOKEN_ADDRESS,
                    wallet_address=address,
                    operation="checkNativeBalance",
                    error=str(e),
                )
            )
            balance = Decimal(0)
            error = str(e)

        return BalanceRecord(
            address=address,
            chain=chain.name,
            token_type="native",
            symbol=chain.native_symbol,
            balance=balance,
            token_address=NATIVE_TOKEN_ADDRESS,
            token_name=chain.native_symbol,
            error=error,
        )

    def check_erc20_balance(
        self,
        address: str,
        chain: ChainDescriptor,
        token: TokenDescriptor,
    ) -> BalanceRecord:
        """
        Probe an ERC-20 token balance for a wallet via ``balanceOf``.

        Args:
            address: Wallet address
            chain: Chain the token lives on
            token: Token contract to query

        Returns:
            BalanceRecord; zero balance with ``error`` set if the probe failed
        """
        try:
            raw_balance = self.pool.get_client(chain).balance_of(token.address, address)
            decimals = token.decimals if token.decimals is not None else DEFAULT_TOKEN_DECIMALS
            balance = format_balance(raw_balance, decimals)
            error = None
        except RpcError as e:
            self.errors.record(
                ErrorRecord(
                    chain=chain.name,
                    token=token.symbol,
                    token_address=token.address,
                    wallet_address=address,
                    operation="checkERC20Balance",
                    error=str(e),
                )
            )
            balance = Decimal(0)
            error = str(e)

        return BalanceRecord(
            address=address,
            chain=chain.name,
            token_type="erc20",
            symbol=token.symbol,
            balance=balance,
            token_address=token.address,
            token_name=token.name,
            error=error,
        )
