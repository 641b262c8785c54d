# Copyright (c) 2026 Region Inventory contributors.
# Licensed under the Apache License, Version 2.0.

"""Persistent region configuration stored in a dotenv-style file."""

import logging
import os
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from dotenv import dotenv_values

from ..models.regions import ConfigComparison
from ..utils.error_handling import ClassifiedError, classify_config_error
from ..utils.region_validation import format_region_list, parse_region_list, validate_regions

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_KEY = "AWS_REGION"


class ConfigFileError(ClassifiedError):
    """Raised when the region configuration file cannot be written."""

    pass


class ConfigStore:
    """
    Reads and writes the configured region set under one key of a dotenv file.

    Lines other than the region key are preserved byte for byte on update.
    The file is replaced atomically, so a reader never sees a half-written
    file.
    """

    def __init__(self, path: str | Path, key: str = DEFAULT_CONFIG_KEY):
        self.path = Path(path)
        self.key = key

    def read(self) -> list[str]:
        """
        Read the configured regions.

        Returns:
            Valid, unique regions from the file; [] if the file is missing,
            unreadable or has no usable value
        """
        if not self.path.exists():
            return []

        try:
            values = dotenv_values(self.path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read region configuration {self.path}: {e}")
            return []

        return parse_region_list(values.get(self.key))

    def update(self, candidate: list[str]) -> bool:
        """
        Persist a new region set.

        Args:
            candidate: Regions to store; invalid entries are dropped

        Returns:
            True if the file was written, False if no candidate was valid
            (the file is left untouched)

        Raises:
            ConfigFileError: If the file cannot be read or written
        """
        valid = validate_regions(candidate)
        if not valid:
            logger.warning("No valid AWS region in the update, configuration left unchanged")
            return False

        new_line = f"{self.key}={format_region_list(valid)}"

        try:
            try:
                existing = self.path.read_text(encoding="utf-8")
            except FileNotFoundError:
                logger.info(f"{self.path} does not exist, creating it")
                existing = ""

            lines = existing.split("\n") if existing else []
            for index, line in enumerate(lines):
                if line.strip().startswith(f"{self.key}="):
                    lines[index] = new_line
                    break
            else:
                if lines and lines[-1] == "":
                    lines.insert(len(lines) - 1, new_line)
                else:
                    lines.append(new_line)

            self._write_atomic("\n".join(lines))

        except OSError as e:
            descriptor = classify_config_error(e)
            logger.error(f"Failed to update region configuration {self.path}: {descriptor.message}")
            raise ConfigFileError(descriptor) from e

        logger.info(f"Updated {self.key}: {format_region_list(valid)}")
        return True

    def _write_atomic(self, text: str) -> None:
        directory = self.path.parent
        fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            if self.path.exists():
                shutil.copymode(self.path, tmp_name)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def compare(self, candidate: list[str]) -> ConfigComparison:
        """
        Diff a candidate region set against the configured one.

        Never writes. Order follows the configured set for ``removed`` and
        ``unchanged`` and the candidate for ``added``.
        """
        previous = self.read()
        new = validate_regions(candidate)
        previous_set = set(previous)
        new_set = set(new)

        return ConfigComparison(
            previous=previous,
            new=new,
            added=[region for region in new if region not in previous_set],
            removed=[region for region in previous if region not in new_set],
            unchanged=[region for region in previous if region in new_set],
        )

    def exists(self) -> bool:
        return self.path.is_file()

    def create_backup(self) -> Path | None:
        """
        Copy the configuration file next to itself with a timestamp suffix.

        Returns:
            Path of the backup, or None if the copy failed
        """
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        backup_path = self.path.with_name(f"{self.path.name}.backup.{timestamp}")
        try:
            shutil.copy2(self.path, backup_path)
        except OSError as e:
            logger.error(f"Failed to back up {self.path}: {e}")
            return None

        logger.info(f"Created configuration backup: {backup_path}")
        return backup_path

    def check_write_permission(self) -> bool:
        """Whether the file (or, if absent, its directory) is writable."""
        if self.path.exists():
            writable = os.access(self.path, os.W_OK)
        else:
            writable = os.access(self.path.parent, os.W_OK)

        if not writable:
            logger.warning(f"No write permission for region configuration {self.path}")
        return writable
