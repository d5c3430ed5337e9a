"""
Incremental output files for balance polling.

Balances and errors are appended as soon as they are produced, so a crash
never loses rows that were already probed. The error JSON document is the
exception: it is rewritten in full after every new error.
"""

import csv
import json
import os
from pathlib import Path
from typing import List, Sequence, Union

from .models import BALANCE_CSV_COLUMNS, ERROR_CSV_COLUMNS, BalanceRecord, ErrorRecord
from .progress import log


ALL_BALANCES_FILENAME = "wallet-balances.csv"
NON_ZERO_BALANCES_FILENAME = "wallets-with-balance.csv"
ERROR_CSV_FILENAME = "balance-check-errors.csv"
ERROR_JSON_FILENAME = "balance-check-errors.json"


def append_csv_rows(path: Union[str, Path], rows: Sequence[Sequence[str]]) -> None:
    """Append rows to a CSV file."""
    with open(path, "a", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerows(rows)


def _create_csv(path: Path, header: List[str]) -> None:
    if not path.exists():
        append_csv_rows(path, [header])


class ErrorCollector:
    """
    Error log for one run, mirrored to a CSV file and a JSON document.

    Errors already present in the JSON document (from an earlier run) are
    loaded on initialization so the mirror keeps matching the CSV.
    """

    def __init__(self, csv_path: Union[str, Path], json_path: Union[str, Path]):
        self.csv_path = Path(csv_path)
        self.json_path = Path(json_path)
        self.errors: List[ErrorRecord] = []

    def initialize(self) -> None:
        _create_csv(self.csv_path, ERROR_CSV_COLUMNS)
        if not self.json_path.exists():
            self.json_path.write_text("[]", encoding="utf-8")
            return

        try:
            existing = json.loads(self.json_path.read_text(encoding="utf-8"))
        except ValueError as e:
            self._set_aside(f"unreadable JSON: {e}")
            return
        if not isinstance(existing, list):
            self._set_aside("not a JSON array")
            return
        self.errors = [
            ErrorRecord(
                chain=str(item.get("chain", "")),
                token=str(item.get("token", "")),
                token_address=str(item.get("tokenAddress", "")),
                wallet_address=str(item.get("walletAddress", "")),
                operation=str(item.get("operation", "")),
                error=str(item.get("error", "")),
            )
            for item in existing
            if isinstance(item, dict)
        ]

    def _set_aside(self, reason: str) -> None:
        """Move an unusable error document out of the way and start a new one."""
        aside_path = self.json_path.with_name(self.json_path.name + ".unreadable")
        os.replace(self.json_path, aside_path)
        self.json_path.write_text("[]", encoding="utf-8")
        log("errors", f"{self.json_path} ({reason}) moved to {aside_path}; starting a new error document")

    def __len__(self) -> int:
        return len(self.errors)

    def write_json(self) -> None:
        """Rewrite the JSON document with every error collected so far."""
        tmp_path = self.json_path.with_name(self.json_path.name + ".tmp")
        tmp_path.write_text(
            json.dumps([error.to_dict() for error in self.errors], indent=2),
            encoding="utf-8",
        )
        os.replace(tmp_path, self.json_path)

    def record(self, error: ErrorRecord) -> None:
        """Append an error and persist it to both destinations."""
        log(error.chain, f"ERROR in {error.operation} ({error.wallet_address}): {error.error}")
        self.errors.append(error)
        self.write_json()
        append_csv_rows(self.csv_path, [error.to_csv_row()])


class OutputSink:
    """The all-balances and non-zero-balances CSV files plus the error log."""

    def __init__(self, output_dir: Union[str, Path] = "."):
        self.output_dir = Path(output_dir)
        self.all_balances_path = self.output_dir / ALL_BALANCES_FILENAME
        self.non_zero_balances_path = self.output_dir / NON_ZERO_BALANCES_FILENAME
        self.errors = ErrorCollector(
            self.output_dir / ERROR_CSV_FILENAME,
            self.output_dir / ERROR_JSON_FILENAME,
        )

    def initialize(self) -> None:
        """Create missing output files with headers; existing files are left untouched."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        _create_csv(self.all_balances_path, BALANCE_CSV_COLUMNS)
        _create_csv(self.non_zero_balances_path, BALANCE_CSV_COLUMNS)
        self.errors.initialize()

    def write_balance(self, record: BalanceRecord) -> bool:
        """
        Append a balance record.

        Returns:
            True if the record also went to the non-zero file
        """
        row = record.to_csv_row()
        if record.is_non_zero:
            append_csv_rows(self.non_zero_balances_path, [row])
        append_csv_rows(self.all_balances_path, [row])
        return record.is_non_zero
