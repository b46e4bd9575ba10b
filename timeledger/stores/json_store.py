"""JSON-file-backed ledger store.

The ledger lives in a single JSON file that several processes may share
(every CLI command is its own process). Each outermost transaction holds an
exclusive lock on ``<ledger>.lock``, reloads the file, runs against the
fresh rows and writes the result back before the lock is released, so the
uniqueness constraints are always checked against the latest committed
state. Reads outside a transaction reload the file when it has changed.

Writes are atomic: data goes to a temp file in the same directory which then
replaces the ledger file, so an interrupted save never corrupts it.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from filelock import FileLock, Timeout
from pydantic import ValidationError as PydanticValidationError

from timeledger.models import (
    Client,
    Expense,
    Invoice,
    InvoiceItem,
    Payment,
    Project,
    TimeEntry,
)
from timeledger.stores.interface import StoreError
from timeledger.stores.memory_store import TABLES, InMemoryLedgerStore

logger = logging.getLogger(__name__)

ROW_MODELS = {
    "clients": Client,
    "projects": Project,
    "time_entries": TimeEntry,
    "expenses": Expense,
    "invoices": Invoice,
    "payments": Payment,
}

LOCK_TIMEOUT_SECONDS = 10.0

FileSignature = Optional[Tuple[int, int, int]]


class JsonFileLedgerStore(InMemoryLedgerStore):
    """Ledger store persisted to a JSON file.

    File structure:
        {
          "version": "1.0",
          "last_updated": "...",
          "clients": [...], "projects": [...], "time_entries": [...],
          "expenses": [...], "invoices": [...], "payments": [...],
          "invoice_items": {"<invoice_id>": [...]}
        }

    Example:
        >>> store = JsonFileLedgerStore("ledger.json")
        >>> store.add_client(Client(name="Acme", created_by_id="u1"))
    """

    FILE_VERSION = "1.0"

    def __init__(
        self, file_path: Union[str, Path], lock_timeout: float = LOCK_TIMEOUT_SECONDS
    ):
        """
        Initialize the store, loading the file if it exists.

        Args:
            file_path: Location of the ledger file
            lock_timeout: Seconds to wait for another writer to finish

        Raises:
            StoreError: If the file exists but cannot be parsed
        """
        super().__init__()
        self.file_path = Path(file_path)
        self._file_lock = FileLock(f"{self.file_path}.lock", timeout=lock_timeout)
        self._signature: FileSignature = None
        self._load_from_disk()
        logger.info(
            f"JsonFileLedgerStore initialized (file={self.file_path}, "
            f"time_entries={len(self._tables['time_entries'])}, "
            f"invoices={len(self._tables['invoices'])})"
        )

    def _begin(self) -> None:
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_lock.acquire()
        except Timeout as e:
            raise StoreError(
                f"Timed out waiting for another writer on {self.file_path}"
            ) from e
        except OSError as e:
            raise StoreError(f"Ledger location {self.file_path} is not writable: {e}") from e

        try:
            self._load_from_disk()
        except BaseException:
            self._file_lock.release()
            raise

    def _end(self) -> None:
        self._file_lock.release()

    def _refresh(self) -> None:
        if self._file_signature() != self._signature:
            self._load_from_disk()

    def _commit(self) -> None:
        self._save_to_disk()

    def _file_signature(self) -> FileSignature:
        # Every save replaces the file, so the inode changes on each write
        try:
            stat = self.file_path.stat()
        except OSError:
            return None
        return (stat.st_ino, stat.st_mtime_ns, stat.st_size)

    def _load_from_disk(self) -> None:
        """Replace the in-memory rows with the file's contents.

        A missing file means an empty ledger. A corrupted file is an error:
        silently starting empty would overwrite the user's data on next save.
        """
        signature = self._file_signature()
        if signature is None:
            logger.debug(f"Ledger file not found, starting empty: {self.file_path}")
            self._tables = {name: {} for name in TABLES}
            self._signature = None
            return

        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StoreError(f"Ledger file {self.file_path} is not valid JSON: {e}") from e

        version = data.get("version", "unknown")
        if version != self.FILE_VERSION:
            raise StoreError(
                f"Unsupported ledger file version (expected {self.FILE_VERSION}, "
                f"got {version})"
            )

        try:
            tables: Dict[str, dict] = {
                table: {row["id"]: model.model_validate(row) for row in data.get(table, [])}
                for table, model in ROW_MODELS.items()
            }
            tables["invoice_items"] = {
                invoice_id: [InvoiceItem.model_validate(item) for item in items]
                for invoice_id, items in data.get("invoice_items", {}).items()
            }
        except (PydanticValidationError, KeyError) as e:
            raise StoreError(f"Ledger file {self.file_path} has invalid rows: {e}") from e

        self._tables = tables
        self._signature = signature
        logger.debug(f"Loaded ledger from {self.file_path}")

    def _serialize(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "version": self.FILE_VERSION,
            "last_updated": datetime.now(timezone.utc).isoformat(),
        }
        for table in ROW_MODELS:
            data[table] = [
                row.model_dump(mode="json") for row in self._tables[table].values()
            ]
        data["invoice_items"] = {
            invoice_id: [item.model_dump(mode="json") for item in items]
            for invoice_id, items in self._tables["invoice_items"].items()
        }
        return data

    def _save_to_disk(self) -> None:
        """Save the ledger using atomic write (temp file + rename).

        Raises:
            StoreError: If the file cannot be written; the transaction is
                then rolled back by the caller
        """
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=self.file_path.parent, suffix=".tmp"
            )
            try:
                with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                    json.dump(self._serialize(), f, indent=2)
                os.replace(temp_path, self.file_path)
                self._signature = self._file_signature()
            except Exception:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
                raise
        except OSError as e:
            raise StoreError(f"Failed to save ledger to {self.file_path}: {e}") from e

        logger.debug(f"Saved ledger to {self.file_path}")
