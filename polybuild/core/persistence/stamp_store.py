"""
Stamp store — last successful fingerprint per action key.

One JSON file per key under the store directory. Writes are atomic
(write to temp file, then rename) so a crash never leaves a half
written stamp that could be mistaken for a valid one. There is no
locking: concurrent writers to the same key race and the last rename
wins.
"""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from polybuild.core.errors import StampWriteError
from polybuild.core.models.params import ParameterTuple
from polybuild.core.models.stamp import StampRecord

logger = logging.getLogger(__name__)

# Stamp directories, relative to an artifact directory / project root
STAMP_SUBDIR = ".polybuild/stamps"
TOOLCHAIN_SUBDIR = ".polybuild/toolchain"

_SUFFIX = ".json"


def action_key(action: str, parameters: ParameterTuple) -> str:
    """Key for (action, parameter tuple).

    The readable prefix is for humans; the digest of the canonical
    parameters keeps distinct tuples from ever sharing a key.
    """
    digest = hashlib.sha256(parameters.canonical().encode("utf-8")).hexdigest()[:16]
    return f"{action}-{parameters.profile}-{digest}"


class StampStore:
    """Read, write and clear stamps in one directory."""

    def __init__(self, directory: Path):
        self.directory = directory

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}{_SUFFIX}"

    def load(self, key: str) -> StampRecord | None:
        """Full record for ``key``; None when absent or unreadable."""
        path = self.path_for(key)
        if not path.is_file():
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return StampRecord.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("Ignoring unreadable stamp %s: %s", path, e)
            return None

    def read(self, key: str) -> str | None:
        """Recorded fingerprint for ``key``, or None."""
        record = self.load(key)
        return record.fingerprint if record else None

    def is_fresh(self, key: str, fingerprint: str) -> bool:
        return self.read(key) == fingerprint

    def write(
        self,
        key: str,
        fingerprint: str,
        action: str = "",
        parameters: dict[str, Any] | None = None,
        variant: str = "",
    ) -> StampRecord:
        """Persist a stamp (atomic write).

        Callers must only write after the action reported success.

        Raises:
            StampWriteError: The directory or file could not be written.
        """
        record = StampRecord(
            action_key=key,
            action=action,
            fingerprint=fingerprint,
            parameters=parameters or {},
            variant=variant,
        )

        path = self.path_for(key)
        content = json.dumps(record.model_dump(mode="json"), indent=2) + "\n"

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".stamp_", suffix=".tmp")
        except OSError as e:
            logger.error("Failed to write stamp %s: %s", path, e)
            raise StampWriteError(
                f"Cannot write stamp {path}: {e}",
                hint=f"Check that {self.directory} is writable",
            ) from e

        tmp = Path(tmp_path)
        try:
            with open(fd, "w", encoding="utf-8") as fh:
                fh.write(content)
            tmp.replace(path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            logger.error("Failed to write stamp %s: %s", path, e)
            raise StampWriteError(
                f"Cannot write stamp {path}: {e}",
                hint=f"Check free space and permissions in {self.directory}",
            ) from e

        logger.debug("Stamp written: %s", path)
        return record

    def clear(self, key: str | None = None) -> int:
        """Remove one stamp, or every stamp when ``key`` is None.

        Returns:
            Number of stamps removed.
        """
        if key is not None:
            path = self.path_for(key)
            if path.is_file():
                path.unlink()
                logger.debug("Stamp cleared: %s", path)
                return 1
            return 0

        if not self.directory.is_dir():
            return 0
        count = len(self.keys())
        shutil.rmtree(self.directory)
        logger.debug("Cleared %d stamp(s) in %s", count, self.directory)
        return count

    def keys(self) -> list[str]:
        """All stored keys, sorted."""
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob(f"*{_SUFFIX}"))

    def records(self) -> list[StampRecord]:
        return [r for r in (self.load(k) for k in self.keys()) if r is not None]
