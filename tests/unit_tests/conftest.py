import json
import os
from typing import Awaitable, Callable

import pytest

from snarkbuild.config import BuildConfig, CircuitConfig
from snarkbuild.errors import CommandError, ProverError
from snarkbuild.execution_layer.circuit import Proof, Setup
from snarkbuild.execution_layer.proof_handlers.base_handler import ProvingBackend
from snarkbuild.utils import command
from snarkbuild.utils.command import CommandResult

COMPILER = "/tools/circom"
PROVER = "/tools/snarkjs"

# Larger than any machine integer, as field elements usually are
BIG_FIELD_ELEMENT = 21888242871839275222246405745257275088548364400416034343698204186575808495617

CIRCUIT_DESCRIPTION = {
    "nPubInputs": 1,
    "nOutputs": 1,
    "nPrvInputs": 1,
    "nSignals": 4,
    "nVars": 4,
    "signals": [{"names": ["one"]}, {"names": ["main.out"]}],
    "constraints": [[{}, {}, {"1": "1"}]],
}


class FakeTools:
    """
    Stands in for the circom and snarkjs executables.
    """

    compiler = COMPILER
    prover = PROVER

    def __init__(self):
        self.calls: list[tuple[str, ...]] = []
        self.failing_compiles: set[str] = set()
        self.failing_verifiers: set[str] = set()
        self.before_compile: dict[str, Callable[[], Awaitable[None]]] = {}
        self.description = CIRCUIT_DESCRIPTION

    def compile_calls(self) -> list[tuple[str, ...]]:
        return [call for call in self.calls if call[0] == COMPILER]

    def verifier_calls(self) -> list[tuple[str, ...]]:
        return [call for call in self.calls if "generateverifier" in call]

    async def __call__(self, *args, check=True):
        args = tuple(str(arg) for arg in args)
        self.calls.append(args)
        if args[0] == COMPILER:
            source, output = args[1], args[3]
            basename = os.path.splitext(os.path.basename(source))[0]
            if basename in self.before_compile:
                await self.before_compile[basename]()
            if basename in self.failing_compiles:
                with open(output, "w", encoding="utf-8") as f:
                    f.write("{ partial")
                raise CommandError(list(args), 1, f"syntax error in {source}")
            with open(output, "w", encoding="utf-8") as f:
                json.dump(self.description, f)
            return CommandResult(list(args), 0, "", "")
        if args[1] == "generateverifier":
            contract = args[args.index("-v") + 1]
            basename = os.path.splitext(os.path.basename(contract))[0]
            if basename in self.failing_verifiers:
                raise CommandError(list(args), 1, "cannot read verification key")
            with open(contract, "w", encoding="utf-8") as f:
                f.write(f"contract Verifier_{basename} {{}}\n")
            return CommandResult(list(args), 0, "", "")
        raise AssertionError(f"Unexpected command {args}")


class FakeBackend(ProvingBackend):
    """
    In-memory proving backend; proofs are valid unless the circuit is listed
    in `invalid`.
    """

    def __init__(self):
        self.invalid: set[str] = set()
        self.failing_setups: set[str] = set()
        self.setups: list[str] = []
        self.witnesses: list[tuple[str, dict]] = []
        self.proofs: list[str] = []
        self.validations: list[str] = []

    async def setup(self, circuit):
        if circuit.basename in self.failing_setups:
            raise ProverError("setup exploded", detail="out of memory")
        self.setups.append(circuit.basename)
        return Setup(
            proving_key={"circuit": circuit.basename, "alpha": BIG_FIELD_ELEMENT},
            verification_key={"circuit": circuit.basename, "protocol": "original"},
        )

    async def calculate_witness(self, circuit, inputs):
        self.witnesses.append((circuit.basename, inputs))
        return [1] + list(inputs.values())

    async def gen_proof(self, proving_key, witness):
        self.proofs.append(proving_key["circuit"])
        return Proof(proof_data={"circuit": proving_key["circuit"]}, public_signals=witness[1:])

    async def is_valid(self, verification_key, proof, public_signals):
        self.validations.append(proof["circuit"])
        return proof["circuit"] not in self.invalid


@pytest.fixture
def fake_tools(monkeypatch):
    tools = FakeTools()
    monkeypatch.setattr(command, "run_command", tools)
    return tools


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def output_dir(tmp_path):
    path = tmp_path / "out"
    path.mkdir()
    return str(path)


@pytest.fixture
def circuits_dir(tmp_path):
    path = tmp_path / "circuits"
    path.mkdir()
    for name in ("a.circom", "b.circom", "notes.md"):
        (path / name).write_text("template Main() {}\n", encoding="utf-8")
    return str(path)


@pytest.fixture
def make_config(circuits_dir, output_dir):
    def _make_config(patterns=("*.circom",), inputs=None, **settings):
        return BuildConfig(
            circuits=CircuitConfig(circuits=list(patterns), inputs=inputs or {}),
            output_dir=output_dir,
            root_dir=circuits_dir,
            compiler_binary=COMPILER,
            prover_binary=PROVER,
            **settings,
        )

    return _make_config


@pytest.fixture
def write_description(output_dir):
    def _write_description(basename, description=None):
        path = os.path.join(output_dir, f"{basename}.json")
        with open(path, "w", encoding="utf-8") as f:
            if isinstance(description, str):
                f.write(description)
            else:
                json.dump(CIRCUIT_DESCRIPTION if description is None else description, f)
        return path

    return _write_description
