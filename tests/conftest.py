"""
Pytest configuration and shared fixtures for wallet balance polling tests.
"""

import csv

import pytest

from scripts.lib.chains import ChainDescriptor
from scripts.lib.output_sink import ErrorCollector, OutputSink
from scripts.lib.pacing import PacingPolicy
from scripts.lib.rpc_client import RpcError
from scripts.lib.wallet_list import ADDRESS_COLUMN, FORMAT_COLUMN, PROVIDER_COLUMN


TEST_RPC_URL = "https://rpc.test.invalid"
TEST_CATALOG_URL = "https://catalog.test.invalid"


@pytest.fixture
def sample_wallet_address():
    """Sample Ethereum wallet address for testing."""
    return "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"  # vitalik.eth


@pytest.fixture
def mock_auth_token():
    """Mock catalog bearer token for testing."""
    return "test-auth-token-12345"


@pytest.fixture
def test_chain():
    """A single chain pointing at a mocked RPC endpoint."""
    return ChainDescriptor("ethereum", 1, "Ethereum", TEST_RPC_URL, "ETH")


@pytest.fixture
def error_collector(tmp_path):
    """An initialized error collector writing into a temporary directory."""
    collector = ErrorCollector(
        tmp_path / "balance-check-errors.csv",
        tmp_path / "balance-check-errors.json",
    )
    collector.initialize()
    return collector


@pytest.fixture
def output_sink(tmp_path):
    """An output sink writing into a temporary directory (not yet initialized)."""
    return OutputSink(tmp_path)


@pytest.fixture
def recorded_sleeps():
    """List that collects every wait requested by a pacing policy."""
    return []


@pytest.fixture
def recording_pacing(recorded_sleeps):
    """Default pacing intervals with sleeps recorded instead of taken."""
    return PacingPolicy(sleep=recorded_sleeps.append)


def write_wallet_list(path, rows, extra_columns=()):
    """Write a source wallet list CSV from (address, format, provider) tuples."""
    fieldnames = ["id", ADDRESS_COLUMN, FORMAT_COLUMN, PROVIDER_COLUMN, *extra_columns]
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for index, (address, fmt, provider) in enumerate(rows, start=1):
            writer.writerow(
                {
                    "id": str(index),
                    ADDRESS_COLUMN: address,
                    FORMAT_COLUMN: fmt,
                    PROVIDER_COLUMN: provider,
                }
            )


def read_csv_rows(path):
    """Read a CSV file into a list of rows (header included)."""
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


class FakeRpcClient:
    """
    In-memory stand-in for RpcClient.

    Balances are looked up by (token, owner); "native" is the token key for
    native balances. Keys listed in ``failures`` raise RpcError.
    """

    def __init__(self, chain, balances=None, failures=None):
        self.chain = chain
        self.balances = balances or {}
        self.failures = failures or set()
        self.calls = []

    def _lookup(self, token, owner):
        self.calls.append((self.chain.name, token, owner))
        if (token, owner) in self.failures or token in self.failures:
            raise RpcError(f"execution reverted: {token}")
        return self.balances.get((token, owner), 0)

    def get_balance(self, address):
        return self._lookup("native", address)

    def balance_of(self, token, owner):
        return self._lookup(token, owner)

    def close(self):
        pass


@pytest.fixture
def wallet_list_writer():
    """Helper that writes a source wallet list CSV."""
    return write_wallet_list


@pytest.fixture
def csv_reader():
    """Helper that reads a CSV file into rows."""
    return read_csv_rows


@pytest.fixture
def fake_rpc_client_class():
    """The FakeRpcClient class, for building client pools in tests."""
    return FakeRpcClient
