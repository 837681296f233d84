"""Externally owned record of previously applied nodes.

The store is a JSON document chosen by the operator. The engine reads a
node's last record (input fingerprint and materialized outputs) to skip
unchanged nodes, and writes new records after each successful node.
Nothing is kept in module-level state.
"""

import json
import logging
import os
import secrets
from pathlib import Path
from typing import Any, Dict, List, Optional

from stackcore.exceptions import InputFileError

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class StateStore:
    """Per-node apply records, optionally backed by a JSON file."""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self._records: Dict[str, Dict[str, Any]] = {}
        document: Dict[str, Any] = {}
        if self.path and self.path.exists():
            document = self._read(self.path)
            self._records = dict(document.get("nodes", {}))
        # Per-store key for input fingerprints, kept with the records
        self.fingerprint_key: str = document.get("fingerprint_key") or secrets.token_hex(16)

    @staticmethod
    def _read(path: Path) -> Dict[str, Any]:
        try:
            with open(path, "r") as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise InputFileError(
                "Failed to read state file", context={"path": str(path), "error": str(e)}
            ) from e
        if not isinstance(document, dict) or document.get("version") != STATE_VERSION:
            raise InputFileError(
                "Unsupported state file format", context={"path": str(path)}
            )
        return document

    def get(self, node_id: str) -> Optional[Dict[str, Any]]:
        record = self._records.get(node_id)
        return dict(record) if record else None

    def put(
        self, node_id: str, kind: str, name: str, fingerprint: str, outputs: Dict[str, Any]
    ) -> None:
        self._records[node_id] = {
            "kind": kind,
            "name": name,
            "fingerprint": fingerprint,
            "outputs": dict(outputs),
        }

    def node_ids(self) -> List[str]:
        return sorted(self._records)

    def save(self) -> None:
        """Write the store back to its file; in-memory stores are a no-op."""
        if not self.path:
            return
        document = {
            "version": STATE_VERSION,
            "fingerprint_key": self.fingerprint_key,
            "nodes": self._records,
        }
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump(document, f, indent=4, sort_keys=True)
        os.replace(tmp_path, self.path)
        logger.debug(f"State written to {self.path}")
