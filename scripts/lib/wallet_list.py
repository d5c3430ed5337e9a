"""
Source wallet list and checkpointing.

The source CSV doubles as the checkpoint: once every chain has been probed
for a wallet, that wallet's eligible rows are removed and the file is
rewritten, so a restarted run only sees the wallets still left to do.
"""

import csv
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Union


ADDRESS_COLUMN = "verified_credential_address"
FORMAT_COLUMN = "verified_credential_format"
PROVIDER_COLUMN = "verified_credential_walletProvider"
REQUIRED_COLUMNS = [ADDRESS_COLUMN, FORMAT_COLUMN, PROVIDER_COLUMN]

ELIGIBLE_FORMAT = "blockchain"
ELIGIBLE_PROVIDER = "embeddedWallet"


def is_embedded_wallet(record: Dict[str, str]) -> bool:
    """Whether a row is a blockchain credential held by an embedded wallet."""
    return (
        record.get(FORMAT_COLUMN) == ELIGIBLE_FORMAT
        and record.get(PROVIDER_COLUMN) == ELIGIBLE_PROVIDER
    )


def is_eligible(record: Dict[str, str]) -> bool:
    """Whether a row names a wallet that should be polled."""
    address = record.get(ADDRESS_COLUMN) or ""
    return address.startswith("0x") and is_embedded_wallet(record)


def extract_wallets(records: List[Dict[str, str]]) -> List[str]:
    """
    Distinct eligible wallet addresses, in first-seen order.

    Examples:
        Rows for 0xA, 0xB, 0xA (all eligible) -> ["0xA", "0xB"]
    """
    wallets: Dict[str, None] = {}
    for record in records:
        if is_eligible(record):
            wallets.setdefault(record[ADDRESS_COLUMN], None)
    return list(wallets)


class WalletListStore:
    """The persisted list of wallets that have not been processed yet."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.records: List[Dict[str, str]] = []
        self.fieldnames: List[str] = []

    def load(self) -> List[Dict[str, str]]:
        """
        Read the source CSV. Blank lines are skipped.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If a required column is missing
        """
        with open(self.path, newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            fieldnames = list(reader.fieldnames or [])
            missing = [column for column in REQUIRED_COLUMNS if column not in fieldnames]
            if missing:
                raise ValueError(f"{self.path} is missing columns: {', '.join(missing)}")
            records = list(reader)

        self.fieldnames = fieldnames
        self.records = records
        return records

    def eligible_wallets(self) -> List[str]:
        return extract_wallets(self.records)

    def update_wallet_list(self, address: str) -> List[Dict[str, str]]:
        """
        Remove a completed wallet's eligible rows and rewrite the file.

        Rows for the same address with a different format or provider are kept.

        Returns:
            The remaining records
        """
        self.records = [
            record
            for record in self.records
            if not (record.get(ADDRESS_COLUMN) == address and is_embedded_wallet(record))
        ]
        self._rewrite()
        return self.records

    def _rewrite(self) -> None:
        # Write beside the target so os.replace stays on one filesystem
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        tmp_path: Optional[str] = tmp_name
        try:
            with os.fdopen(fd, "w", newline="", encoding="utf-8") as f:
                writer = csv.DictWriter(f, fieldnames=self.fieldnames, extrasaction="ignore")
                writer.writeheader()
                writer.writerows(self.records)
            os.replace(tmp_name, self.path)
            tmp_path = None
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)
