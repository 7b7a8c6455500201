"""
Fingerprinting — has anything relevant changed since the last success?

The fingerprint covers every watched marker (content hash, or the
literal ``absent`` for a candidate that does not exist) plus the
canonical ParameterTuple. Content hashes are used instead of mtimes so
the result is independent of timestamp granularity and clock skew.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from polybuild.core.models.markers import ProjectDescriptor
from polybuild.core.models.params import ParameterTuple

logger = logging.getLogger(__name__)

_ABSENT = "absent"
_CHUNK = 1 << 16


def file_digest(path: Path) -> str:
    """sha256 of a file's bytes."""
    h = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


def compute_fingerprint(
    descriptor: ProjectDescriptor,
    parameters: ParameterTuple,
) -> str:
    """Opaque, reproducible identifier of watched inputs + parameters."""
    root = Path(descriptor.root)
    present = set(descriptor.paths)

    lines: list[str] = []
    for rel in sorted(present | set(descriptor.candidates)):
        if rel in present:
            try:
                signal = file_digest(root / rel)
            except OSError:
                # vanished between scan and hash
                signal = _ABSENT
        else:
            signal = _ABSENT
        lines.append(f"{rel}\0{signal}")

    lines.append(parameters.canonical())

    value = hashlib.sha256("\n".join(lines).encode("utf-8")).hexdigest()
    logger.debug("Fingerprint %s: %s", descriptor.ecosystem, value[:12])
    return value


def parameters_fingerprint(parameters: ParameterTuple) -> str:
    """Fingerprint of the parameters alone (toolchain stamps)."""
    return hashlib.sha256(parameters.canonical().encode("utf-8")).hexdigest()
