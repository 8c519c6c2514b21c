import json
import os

import pytest

from snarkbuild.utils.encoding import (
    dump_artifact,
    encode_artifact,
    remove_if_exists,
    write_text_atomic,
)


def test_field_elements_become_decimal_strings():
    big = 2**254 + 1

    assert encode_artifact({"alpha": [big, [-big, 4]], "n": 0}) == {
        "alpha": [str(big), [str(-big), 4]],
        "n": 0,
    }


def test_safe_range_boundary():
    limit = 2**53 - 1

    assert encode_artifact([limit, limit + 1]) == [limit, str(limit + 1)]


def test_legacy_key_shape_survives_round_trip():
    # Shape of a legacy snarkjs proving key: counters are numbers and field
    # elements are already strings
    proving_key = {
        "protocol": "original",
        "nVars": 4,
        "nPublic": 1,
        "domainBits": 2,
        "domainSize": 4,
        "polsA": [{"0": "1"}, {}],
        "A": [["5299619240641551281634865583518297030282874472190772894086521144482721001553", "1", "1"]],
    }

    assert json.loads(dump_artifact(proving_key)) == proving_key


def test_non_integers_are_left_alone():
    value = {"protocol": "original", "ok": True, "ratio": 0.5, "none": None}

    assert encode_artifact(value) == value


def test_encoding_does_not_mutate_input():
    value = {"a": [1]}

    encode_artifact(value)

    assert value == {"a": [1]}


def test_dump_artifact_is_json():
    assert json.loads(dump_artifact((1, 2**64))) == [1, str(2**64)]


def test_atomic_write_leaves_only_target(tmp_path):
    target = tmp_path / "a.vk_proof"
    target.write_text("old")

    write_text_atomic(str(target), "new")

    assert target.read_text() == "new"
    assert os.listdir(tmp_path) == ["a.vk_proof"]


def test_atomic_write_failure_keeps_old_content(tmp_path, monkeypatch):
    target = tmp_path / "a.vk_proof"
    target.write_text("old")

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", broken_replace)
    with pytest.raises(OSError):
        write_text_atomic(str(target), "new")

    assert target.read_text() == "old"
    assert os.listdir(tmp_path) == ["a.vk_proof"]


def test_remove_if_exists(tmp_path):
    target = tmp_path / "a.sol"
    target.write_text("contract")

    assert remove_if_exists(str(target)) is True
    assert remove_if_exists(str(target)) is False
