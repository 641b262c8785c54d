# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""Single-file JSON document store with named slots."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DISCOVERY_SLOT = "region_discovery"
RESOURCES_SLOT = "aws_resources"

KNOWN_SLOTS: frozenset[str] = frozenset([DISCOVERY_SLOT, RESOURCES_SLOT])


class JsonDocumentStore:
    """
    One JSON object on disk, keyed by a closed set of slot names.

    Reads never raise: a missing or corrupt file reads as empty. Writes
    replace the whole file atomically and let OSError propagate. The store
    assumes a single writer process.
    """

    def __init__(self, path: str | Path, slots: frozenset[str] = KNOWN_SLOTS):
        self.path = Path(path)
        self.slots = slots

    def _check_slot(self, slot: str) -> None:
        if slot not in self.slots:
            raise ValueError(f"Unknown cache slot: {slot}")

    def _load(self) -> dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read cache file {self.path}: {e}")
            return {}

        if not isinstance(document, dict):
            logger.warning(f"Ignoring cache file {self.path}: top level is not an object")
            return {}
        return document

    def _dump(self, document: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, default=str)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def get(self, slot: str) -> Any | None:
        """Value stored in a slot, or None if the slot is empty."""
        self._check_slot(slot)
        return self._load().get(slot)

    def set(self, slot: str, value: Any) -> None:
        """
        Store a JSON-serializable value in a slot, keeping the other slots.

        Raises:
            ValueError: If the slot name is not known
            OSError: If the file cannot be written
        """
        self._check_slot(slot)
        document = self._load()
        document[slot] = value
        self._dump(document)

    def delete(self, slot: str) -> bool:
        """Empty a slot. Returns True if it held a value."""
        self._check_slot(slot)
        document = self._load()
        if slot not in document:
            return False
        del document[slot]
        self._dump(document)
        return True

    def has(self, slot: str) -> bool:
        self._check_slot(slot)
        return slot in self._load()
