"""
Resumable wallet balance polling run.

Wallets are processed strictly one at a time. Every balance record and
every error is written as soon as it exists, and a wallet is checkpointed
(removed from the source list) once all of its chains have been probed.
"""

from typing import Dict, List

from .balance_prober import BalanceProber
from .chains import ChainDescriptor
from .models import (
    NOT_APPLICABLE,
    BalanceRecord,
    ErrorRecord,
    RunSummary,
    TokenDescriptor,
    WalletResult,
)
from .output_sink import OutputSink
from .pacing import PacingPolicy
from .progress import log
from .token_catalog import TokenCatalogClient
from .wallet_list import WalletListStore


DEFAULT_TOKEN_LIMIT = 20


class WalletPoller:
    """Drives catalog fetches, balance probes, output and checkpointing for one run."""

    def __init__(
        self,
        store: WalletListStore,
        chains: List[ChainDescriptor],
        prober: BalanceProber,
        catalog: TokenCatalogClient,
        sink: OutputSink,
        pacing: PacingPolicy,
        token_limit: int = DEFAULT_TOKEN_LIMIT,
    ):
        self.store = store
        self.chains = chains
        self.prober = prober
        self.catalog = catalog
        self.sink = sink
        self.pacing = pacing
        self.token_limit = token_limit

    def fetch_token_lists(self) -> Dict[int, List[TokenDescriptor]]:
        """Fetch each chain's token catalog once, in registry order."""
        token_lists: Dict[int, List[TokenDescriptor]] = {}
        for chain in self.chains:
            log(chain.name, f"Fetching token list (chain id {chain.id})...")
            token_lists[chain.id] = self.catalog.fetch_token_list(chain.id)
            log(chain.name, f"Found {len(token_lists[chain.id])} tokens")
            self.pacing.after_catalog_fetch()
        return token_lists

    def _emit(self, result: WalletResult, record: BalanceRecord, summary: RunSummary) -> None:
        result.records.append(record)
        summary.records_written += 1
        if self.sink.write_balance(record):
            result.has_non_zero_balance = True
            summary.non_zero_records += 1

    def process_wallet(
        self,
        address: str,
        token_lists: Dict[int, List[TokenDescriptor]],
        summary: RunSummary,
    ) -> WalletResult:
        """
        Probe every chain for one wallet: native balance first, then the
        first ``token_limit`` catalog tokens in catalog order.
        """
        result = WalletResult(address=address)

        for chain in self.chains:
            self.pacing.before_native_probe()
            self._emit(result, self.prober.check_native_balance(address, chain), summary)

            tokens = token_lists.get(chain.id, [])[: self.token_limit]
            for token in tokens:
                self.pacing.before_token_probe()
                self._emit(result, self.prober.check_erc20_balance(address, chain, token), summary)

            log(chain.name, f"Completed checks for {address}")

        return result

    def run(self) -> RunSummary:
        """
        Process every wallet left in the source list.

        Unexpected failures are recorded as a ``processWallets`` error
        instead of being raised; ``summary.failed`` is set in that case.
        """
        summary = RunSummary()
        errors_at_start = 0

        try:
            self.sink.initialize()
            errors_at_start = len(self.sink.errors)

            self.store.load()
            wallets = self.store.eligible_wallets()
            summary.wallets_found = len(wallets)
            log("wallets", f"Found {len(wallets)} unique embedded wallet addresses to check")

            if not wallets:
                return summary

            token_lists = self.fetch_token_lists()

            for count, address in enumerate(wallets, start=1):
                log("wallets", f"Processing wallet {count}/{len(wallets)}: {address}")
                self.process_wallet(address, token_lists, summary)

                self.store.update_wallet_list(address)
                summary.wallets_processed = count
                log("wallets", f"Removed {address} from {self.store.path.name}")

                if self.pacing.is_batch_boundary(count):
                    log("wallets", f"Processed {count}/{len(wallets)} wallets, pausing for rate limits...")
                    self.pacing.after_batch()

            log("wallets", f"Process complete. Checked {summary.wallets_processed} wallets.")

        except Exception as e:
            summary.failed = True
            log("wallets", f"Error processing wallets: {e}")
            try:
                self.sink.errors.record(
                    ErrorRecord(
                        chain=NOT_APPLICABLE,
                        token=NOT_APPLICABLE,
                        token_address=NOT_APPLICABLE,
                        wallet_address=NOT_APPLICABLE,
                        operation="processWallets",
                        error=str(e),
                    )
                )
            except OSError as write_error:
                log("wallets", f"Failed to write error logs: {write_error}")

        finally:
            summary.errors_recorded = len(self.sink.errors) - errors_at_start

        return summary
