from __future__ import annotations

import glob
import os
from typing import Iterable, Optional

import bittensor as bt

from snarkbuild.constants import Extension
from snarkbuild.errors import DiscoveryError
from snarkbuild.execution_layer.circuit import CircuitSource

DISCOVERY_LOG_PREFIX = " Discovery | "


def resolve_pattern(pattern: str, root_dir: Optional[str] = None) -> list[str]:
    """
    Resolve one glob pattern to the matching paths, sorted.

    Raises:
        DiscoveryError: If the pattern cannot be resolved.
    """
    if not isinstance(pattern, str) or not pattern:
        raise DiscoveryError(f"Invalid circuit pattern: {pattern!r}")
    full_pattern = (
        pattern if os.path.isabs(pattern) or not root_dir else os.path.join(root_dir, pattern)
    )
    try:
        return sorted(glob.glob(full_pattern, recursive=True))
    except (OSError, ValueError) as e:
        raise DiscoveryError(
            f"Could not resolve circuit pattern {pattern}: {e}", detail=str(e)
        ) from e


def discover_circuits(
    patterns: Iterable[str], root_dir: Optional[str] = None
) -> list[CircuitSource]:
    """
    Find the circuit sources matched by the configured patterns.

    Patterns are resolved one at a time in their declared order and the
    results are concatenated; only `.circom` files are kept.

    Args:
        patterns (Iterable[str]): Glob patterns, relative ones resolved against `root_dir`.
        root_dir (str | None): Directory relative patterns are anchored to.

    Returns:
        list[CircuitSource]: The discovered sources. Empty when there are no patterns.
    """
    sources: list[CircuitSource] = []
    for pattern in patterns:
        matches = resolve_pattern(pattern, root_dir)
        circuits = [
            path
            for path in matches
            if os.path.splitext(path)[1] == Extension.CIRCOM and os.path.isfile(path)
        ]
        bt.logging.debug(
            f"{DISCOVERY_LOG_PREFIX}Pattern {pattern} matched {len(circuits)} circuit(s)"
        )
        sources.extend(CircuitSource(path) for path in circuits)
    return sources


def split_duplicates(
    sources: list[CircuitSource],
) -> tuple[list[CircuitSource], list[CircuitSource]]:
    """
    Separate sources whose basename was already taken by an earlier source.

    The same file matched by several patterns is kept once and not reported.

    Returns:
        tuple[list[CircuitSource], list[CircuitSource]]: The unique sources, and
        the sources rejected because of a basename collision.
    """
    seen: dict[str, CircuitSource] = {}
    unique: list[CircuitSource] = []
    duplicates: list[CircuitSource] = []
    for source in sources:
        first = seen.get(source.basename)
        if first is None:
            seen[source.basename] = source
            unique.append(source)
        elif os.path.realpath(first.path) == os.path.realpath(source.path):
            continue
        else:
            bt.logging.error(
                f"{DISCOVERY_LOG_PREFIX}Circuit {source.path} has the same basename as "
                f"{first.path}, ignoring it"
            )
            duplicates.append(source)
    return unique, duplicates
