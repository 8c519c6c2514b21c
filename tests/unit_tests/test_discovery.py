import os

import pytest

from snarkbuild.deployment_layer.discovery import (
    discover_circuits,
    resolve_pattern,
    split_duplicates,
)
from snarkbuild.errors import DiscoveryError
from snarkbuild.execution_layer.circuit import CircuitSource


def test_no_patterns_discovers_nothing(circuits_dir):
    assert discover_circuits([], circuits_dir) == []


def test_only_circuit_sources_are_kept(circuits_dir):
    sources = discover_circuits(["*"], circuits_dir)

    assert [s.basename for s in sources] == ["a", "b"]
    assert all(s.path.endswith(".circom") for s in sources)


def test_patterns_are_resolved_in_declared_order(circuits_dir):
    sources = discover_circuits(["b.*", "a.*"], circuits_dir)

    assert [s.basename for s in sources] == ["b", "a"]


def test_recursive_patterns(circuits_dir):
    nested = os.path.join(circuits_dir, "lib", "hash")
    os.makedirs(nested)
    open(os.path.join(nested, "poseidon.circom"), "w").close()

    sources = discover_circuits(["**/*.circom"], circuits_dir)

    assert sorted(s.basename for s in sources) == ["a", "b", "poseidon"]


def test_absolute_patterns_ignore_root_dir(circuits_dir, tmp_path):
    sources = discover_circuits(
        [os.path.join(circuits_dir, "a.circom")], str(tmp_path / "elsewhere")
    )

    assert [s.basename for s in sources] == ["a"]


def test_invalid_pattern_raises():
    with pytest.raises(DiscoveryError):
        resolve_pattern("")


def test_split_duplicates_rejects_basename_collisions(circuits_dir):
    other = os.path.join(circuits_dir, "other")
    os.makedirs(other)
    clash = os.path.join(other, "a.circom")
    open(clash, "w").close()
    first = CircuitSource(os.path.join(circuits_dir, "a.circom"))

    unique, duplicates = split_duplicates([first, CircuitSource(clash)])

    assert unique == [first]
    assert [d.path for d in duplicates] == [clash]


def test_split_duplicates_keeps_same_file_once(circuits_dir):
    path = os.path.join(circuits_dir, "a.circom")

    unique, duplicates = split_duplicates([CircuitSource(path), CircuitSource(path)])

    assert len(unique) == 1
    assert duplicates == []


def test_source_basename_strips_extension():
    assert CircuitSource("/some/path/multiplier.circom").basename == "multiplier"
