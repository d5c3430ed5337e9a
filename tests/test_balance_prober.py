"""
Unit tests for the balance prober.

Tests follow the Given/When/Then pattern for clarity.
"""

from decimal import Decimal

import responses

from scripts.lib.balance_prober import BalanceProber, format_balance
from scripts.lib.models import TokenDescriptor
from scripts.lib.rpc_client import RpcClient, RpcClientPool


USDC = TokenDescriptor(
    address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
    symbol="USDC",
    name="USD Coin",
    decimals=6,
)


def _no_retry_pool():
    return RpcClientPool(client_factory=lambda chain: RpcClient(chain, max_retries=0, retry_delay=0))


class TestFormatBalance:
    """Tests for the format_balance helper function."""

    def test_scales_by_decimals(self):
        """
        Given a raw balance and 6 decimals
        When formatting
        Then the decimal amount should be exact
        """
        assert format_balance(1500000, 6) == Decimal("1.5")

    def test_preserves_full_precision(self):
        """
        Given a balance with 18 significant decimals
        When formatting
        Then no precision should be lost
        """
        assert format_balance(1234567890123456789, 18) == Decimal("1.234567890123456789")

    def test_keeps_every_digit_of_large_balances(self):
        """
        Given balances with more than 28 significant digits
        When formatting
        Then every digit should be kept
        """
        assert format_balance(123456789012345678901234567890123, 18) == Decimal(
            "123456789012345.678901234567890123"
        )
        max_uint256 = 2**256 - 1
        assert format(format_balance(max_uint256, 18), "f").replace(".", "") == str(max_uint256)

    def test_handles_zero_balance_and_zero_decimals(self):
        """
        Given a zero balance or zero decimals
        When formatting
        Then the plain value should be returned
        """
        assert format_balance(0, 18) == 0
        assert format_balance(12345, 0) == Decimal(12345)


class TestCheckNativeBalance:
    """Tests for BalanceProber.check_native_balance."""

    @responses.activate
    def test_returns_native_record(self, test_chain, sample_wallet_address, error_collector):
        """
        Given a wallet holding 1.5 ETH
        When checking the native balance
        Then a native record with the scaled balance should be returned
        """
        # Given
        prober = BalanceProber(_no_retry_pool(), error_collector)
        responses.add(
            responses.POST,
            test_chain.rpc_url,
            json={"jsonrpc": "2.0", "id": 1, "result": hex(1500000000000000000)},
            status=200,
        )

        # When
        record = prober.check_native_balance(sample_wallet_address, test_chain)

        # Then
        assert record.address == sample_wallet_address
        assert record.chain == "Ethereum"
        assert record.token_type == "native"
        assert record.symbol == "ETH"
        assert record.token_address == "native"
        assert record.token_name == "ETH"
        assert record.balance == Decimal("1.5")
        assert record.error is None
        assert len(error_collector) == 0

    @responses.activate
    def test_failure_is_absorbed_as_zero_balance(self, test_chain, sample_wallet_address, error_collector):
        """
        Given an RPC endpoint that keeps failing
        When checking the native balance
        Then a zero-balance record with the error should be returned and the error recorded
        """
        # Given
        prober = BalanceProber(_no_retry_pool(), error_collector)
        responses.add(responses.POST, test_chain.rpc_url, status=503)

        # When
        record = prober.check_native_balance(sample_wallet_address, test_chain)

        # Then
        assert record.balance == 0
        assert record.token_type == "native"
        assert "503" in record.error
        error = error_collector.errors[0]
        assert error.operation == "checkNativeBalance"
        assert error.chain == "Ethereum"
        assert error.token == "ETH"
        assert error.token_address == "native"
        assert error.wallet_address == sample_wallet_address
        assert error.error == record.error


class TestCheckERC20Balance:
    """Tests for BalanceProber.check_erc20_balance."""

    @responses.activate
    def test_returns_token_record_scaled_by_token_decimals(
        self, test_chain, sample_wallet_address, error_collector
    ):
        """
        Given a wallet holding 100 USDC (6 decimals)
        When checking the token balance
        Then an erc20 record with balance 100 should be returned
        """
        # Given
        prober = BalanceProber(_no_retry_pool(), error_collector)
        responses.add(
            responses.POST,
            test_chain.rpc_url,
            json={"jsonrpc": "2.0", "id": 1, "result": "0x" + hex(100000000)[2:].rjust(64, "0")},
            status=200,
        )

        # When
        record = prober.check_erc20_balance(sample_wallet_address, test_chain, USDC)

        # Then
        assert record.token_type == "erc20"
        assert record.symbol == "USDC"
        assert record.token_name == "USD Coin"
        assert record.token_address == USDC.address
        assert record.balance == Decimal(100)
        assert record.to_csv_row()[4] == "100"

    @responses.activate
    def test_revert_is_absorbed_as_zero_balance(self, test_chain, sample_wallet_address, error_collector):
        """
        Given a token contract call that reverts
        When checking the token balance
        Then a zero-balance record should be returned and a checkERC20Balance error recorded
        """
        # Given
        prober = BalanceProber(_no_retry_pool(), error_collector)
        responses.add(
            responses.POST,
            test_chain.rpc_url,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": 3, "message": "execution reverted"}},
            status=200,
        )

        # When
        record = prober.check_erc20_balance(sample_wallet_address, test_chain, USDC)

        # Then
        assert record.balance == 0
        assert "execution reverted" in record.error
        error = error_collector.errors[0]
        assert error.operation == "checkERC20Balance"
        assert error.token == "USDC"
        assert error.token_address == USDC.address
        assert error.wallet_address == sample_wallet_address

    def test_invalid_wallet_address_is_absorbed(self, test_chain, sample_wallet_address, error_collector):
        """
        Given a malformed wallet address
        When checking the token balance
        Then no request should be made and a zero-balance record returned
        """
        # Given
        prober = BalanceProber(_no_retry_pool(), error_collector)

        # When
        record = prober.check_erc20_balance("0xnot-an-address", test_chain, USDC)

        # Then
        assert record.balance == 0
        assert "Invalid address" in record.error
        assert len(error_collector) == 1

    def test_uses_pooled_client(self, test_chain, sample_wallet_address, error_collector, fake_rpc_client_class):
        """
        Given a pool of fake clients
        When probing native and token balances
        Then both probes should go through the same cached client
        """
        # Given
        clients = []

        def factory(chain):
            client = fake_rpc_client_class(
                chain, balances={(USDC.address, sample_wallet_address): 2500000}
            )
            clients.append(client)
            return client

        prober = BalanceProber(RpcClientPool(client_factory=factory), error_collector)

        # When
        native = prober.check_native_balance(sample_wallet_address, test_chain)
        token = prober.check_erc20_balance(sample_wallet_address, test_chain, USDC)

        # Then
        assert len(clients) == 1
        assert len(clients[0].calls) == 2
        assert native.balance == 0
        assert token.balance == Decimal("2.5")
