"""
Marker scan — build a ProjectDescriptor from the project root.

Only files that actually exist become markers. Glob candidates (cargo
workspace members) are expanded and sorted so the result never depends
on directory listing order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from polybuild.core.models.markers import Marker, MarkerSpec, ProjectDescriptor

logger = logging.getLogger(__name__)


def scan_markers(
    root: Path,
    ecosystem: str,
    specs: Iterable[MarkerSpec],
    exclude: Iterable[str] = (),
) -> ProjectDescriptor:
    """Existence-filtered scan of ``specs`` under ``root``.

    Args:
        root: Project root directory.
        ecosystem: Ecosystem name recorded on the descriptor.
        specs: Candidate markers, literal filenames or globs.
        exclude: Relative directories whose contents are never markers
            (the artifact directory, for instance).

    Returns:
        ProjectDescriptor with markers sorted by path.
    """
    root = root.resolve()
    excluded = tuple(e.strip("/") + "/" for e in exclude if e and e.strip("/"))

    found: dict[str, Marker] = {}
    candidates: list[str] = []

    for spec in specs:
        if spec.is_glob:
            for path in sorted(root.glob(spec.pattern)):
                if not path.is_file():
                    continue
                rel = path.relative_to(root).as_posix()
                if rel.startswith(excluded):
                    continue
                found.setdefault(rel, Marker(path=rel, role=spec.role))
            continue

        candidates.append(spec.pattern)
        if (root / spec.pattern).is_file():
            found.setdefault(spec.pattern, Marker(path=spec.pattern, role=spec.role))

    markers = [found[p] for p in sorted(found)]
    logger.debug(
        "Markers for %s in %s: %s", ecosystem, root, ", ".join(m.path for m in markers) or "none"
    )
    return ProjectDescriptor(
        root=str(root),
        ecosystem=ecosystem,
        markers=markers,
        candidates=sorted(set(candidates)),
    )
