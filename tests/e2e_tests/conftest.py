import os

import pytest
from bittensor.utils.btlogging import logging

from snarkbuild.constants import CIRCOM_BINARY_NAME, SNARKJS_BINARY_NAME
from snarkbuild.utils.pre_flight import find_binary

MULTIPLIER = """
template Multiplier() {
    signal private input a;
    signal private input b;
    signal output c;

    c <== a*b;
}

component main = Multiplier();
"""


# Fixture locating a real circom and snarkjs, either from the environment or
# from node_modules / PATH
@pytest.fixture(scope="session")
def toolchain():
    compiler = os.getenv("SNARKBUILD_CIRCOM") or find_binary(CIRCOM_BINARY_NAME)
    prover = os.getenv("SNARKBUILD_SNARKJS") or find_binary(SNARKJS_BINARY_NAME)
    if not compiler or not prover:
        logging.warning("circom or snarkjs not found, e2e test skipped.")
        pytest.skip("circom and snarkjs are required for e2e tests.")
    return compiler, prover


@pytest.fixture
def project(tmp_path):
    circuits = tmp_path / "circuits"
    circuits.mkdir()
    (circuits / "multiplier.circom").write_text(MULTIPLIER)
    (circuits / "unproven.circom").write_text(MULTIPLIER)
    return tmp_path
