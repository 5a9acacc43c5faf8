"""
Persisted outcome store: a JSON file shared by dependent test files.

A test that establishes something other tests rely on (for example a
successful login) records it here; the dependent tests read the record
first and skip themselves when the prerequisite is missing::

    store.write({"loginSuccess": True})          # in test A
    if not store.get("loginSuccess"):             # in test B
        pytest.skip("login was not successful")

Every write merges into the current record and rewrites the whole file.
There is no locking, so concurrent writers race and the last write wins;
outcome-gated tests are only reliable in sequential execution mode.
A write interrupted by a crash can leave invalid JSON behind, which
readers treat as "no prior outcome".
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest

from e2e_kit.config import RunConfig

logger = logging.getLogger(__name__)


class OutcomeStore:
    """
    File-backed key/value record of cross-test results.

    Attributes:
        path: JSON file holding the record.
    """

    def __init__(self, path: str | os.PathLike[str]):
        self.path = Path(path)

    @classmethod
    def from_config(cls, config: RunConfig) -> "OutcomeStore":
        return cls(config.outcome_file)

    def read(self) -> dict[str, Any]:
        """
        Return the current record.

        Returns:
            The stored mapping; an empty dict when the file is missing,
            unreadable as JSON, or does not hold a JSON object.
        """
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return {}

        # UnicodeDecodeError is a ValueError too.
        try:
            data = json.loads(raw.decode("utf-8"))
        except ValueError:
            logger.warning("Outcome file %s is corrupted; treating as empty", self.path)
            return {}

        if not isinstance(data, dict):
            logger.warning("Outcome file %s does not hold an object; treating as empty", self.path)
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        """Read the record and return one key (``default`` when absent)."""
        return self.read().get(key, default)

    def write(self, record: Mapping[str, Any]) -> dict[str, Any]:
        """
        Merge ``record`` into the stored record and flush it to disk.

        Args:
            record: JSON-serializable values to merge; existing keys are
                overwritten.

        Returns:
            The merged record as written.

        Raises:
            OSError: The file or its directory cannot be written.
            TypeError: A value is not JSON-serializable.
        """
        merged = self.read()
        merged.update(record)
        payload = json.dumps(merged, indent=2)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(payload, encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to write outcome file %s: %s", self.path, exc)
            raise

        logger.info("Recorded outcome %s in %s", sorted(record), self.path)
        return merged

    def clear(self) -> None:
        """Delete the backing file; a missing file is not an error."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        logger.info("Cleared outcome file %s", self.path)


def require_outcome(node, store: OutcomeStore, parallel: bool = False) -> None:
    """
    Skip the test ``node`` unless its ``requires_outcome(key)`` key is recorded.

    Args:
        node: The pytest item (``request.node``).
        store: Store holding the recorded outcomes.
        parallel: Whether tests run in parallel.  The writer may not have
            run yet then, so a warning is logged before the check.
    """
    marker = node.get_closest_marker("requires_outcome")
    if marker is None:
        return
    if parallel:
        logger.warning(
            "%s depends on a recorded outcome; run in sequential mode for a reliable order",
            node.nodeid,
        )
    key = marker.args[0]
    if not store.get(key):
        pytest.skip(f"Prerequisite outcome '{key}' was not recorded")


def default_store() -> OutcomeStore:
    """Store at the configured outcome path (``E2E_OUTCOME_FILE`` overrides)."""
    default = RunConfig().outcome_file
    return OutcomeStore(os.environ.get("E2E_OUTCOME_FILE", default))


def write_test_data(data: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``data`` into the default outcome file."""
    return default_store().write(data)


def read_test_data() -> dict[str, Any]:
    """Return the default outcome file's record (empty when absent)."""
    return default_store().read()
