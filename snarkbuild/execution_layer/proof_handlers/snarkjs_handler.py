from __future__ import annotations

import asyncio
import json
import os
import tempfile
from typing import TYPE_CHECKING, Any

import bittensor as bt

from snarkbuild.constants import DEFAULT_PROTOCOL
from snarkbuild.errors import CommandError, ProverError
from snarkbuild.execution_layer.circuit import Proof, Setup
from snarkbuild.execution_layer.proof_handlers.base_handler import ProvingBackend
from snarkbuild.utils import command
from snarkbuild.utils.encoding import dump_artifact

if TYPE_CHECKING:
    from snarkbuild.execution_layer.circuit import CompiledCircuit


def _write_json(path: str, value: Any) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(dump_artifact(value))


def _read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


class SnarkjsHandler(ProvingBackend):
    """
    Proving backend driving the legacy snarkjs command line.

    Every call works in its own temporary directory, so concurrent circuits
    never share scratch files.
    """

    def __init__(self, binary: str, protocol: str = DEFAULT_PROTOCOL):
        self.binary = binary
        self.protocol = protocol

    async def _run(self, *args: str) -> command.CommandResult:
        try:
            return await command.run_command(self.binary, *args)
        except CommandError as e:
            raise ProverError(
                f"snarkjs {args[0]} failed: {e.detail or e}", detail=e.detail
            ) from e

    async def setup(self, circuit: CompiledCircuit) -> Setup:
        with tempfile.TemporaryDirectory(prefix="snarkbuild-setup-") as workdir:
            pk_path = os.path.join(workdir, "proving_key.json")
            vk_path = os.path.join(workdir, "verification_key.json")
            bt.logging.debug(
                f"Running {self.protocol} setup for {circuit.basename} in {workdir}"
            )
            await self._run(
                "setup",
                "-c",
                circuit.description_path,
                "--pk",
                pk_path,
                "--vk",
                vk_path,
                "--protocol",
                self.protocol,
            )
            proving_key = await self._load(pk_path)
            verification_key = await self._load(vk_path)
        return Setup(proving_key=proving_key, verification_key=verification_key)

    async def calculate_witness(
        self, circuit: CompiledCircuit, inputs: dict[str, Any]
    ) -> list[Any]:
        with tempfile.TemporaryDirectory(prefix="snarkbuild-witness-") as workdir:
            input_path = os.path.join(workdir, "input.json")
            witness_path = os.path.join(workdir, "witness.json")
            await asyncio.to_thread(_write_json, input_path, inputs)
            await self._run(
                "calculatewitness",
                "-c",
                circuit.description_path,
                "-i",
                input_path,
                "-w",
                witness_path,
            )
            witness = await self._load(witness_path)
        if not isinstance(witness, list):
            raise ProverError(f"Unexpected witness format for {circuit.basename}")
        return witness

    async def gen_proof(self, proving_key: dict[str, Any], witness: list[Any]) -> Proof:
        with tempfile.TemporaryDirectory(prefix="snarkbuild-proof-") as workdir:
            pk_path = os.path.join(workdir, "proving_key.json")
            witness_path = os.path.join(workdir, "witness.json")
            proof_path = os.path.join(workdir, "proof.json")
            public_path = os.path.join(workdir, "public.json")
            await asyncio.to_thread(_write_json, pk_path, proving_key)
            await asyncio.to_thread(_write_json, witness_path, witness)
            await self._run(
                "proof",
                "-w",
                witness_path,
                "--pk",
                pk_path,
                "-p",
                proof_path,
                "--pub",
                public_path,
            )
            proof = await self._load(proof_path)
            public_signals = await self._load(public_path)
        bt.logging.trace(f"Proof generated with public signals: {public_signals}")
        return Proof(proof_data=proof, public_signals=public_signals)

    async def is_valid(
        self,
        verification_key: dict[str, Any],
        proof: dict[str, Any],
        public_signals: list[Any],
    ) -> bool:
        with tempfile.TemporaryDirectory(prefix="snarkbuild-verify-") as workdir:
            vk_path = os.path.join(workdir, "verification_key.json")
            proof_path = os.path.join(workdir, "proof.json")
            public_path = os.path.join(workdir, "public.json")
            await asyncio.to_thread(_write_json, vk_path, verification_key)
            await asyncio.to_thread(_write_json, proof_path, proof)
            await asyncio.to_thread(_write_json, public_path, public_signals)
            try:
                result = await command.run_command(
                    self.binary,
                    "verify",
                    "--vk",
                    vk_path,
                    "-p",
                    proof_path,
                    "--pub",
                    public_path,
                    check=False,
                )
            except CommandError as e:
                raise ProverError(f"snarkjs verify failed: {e}", detail=e.detail) from e

        bt.logging.trace(f"Proof verification stdout: {result.stdout}")
        bt.logging.trace(f"Proof verification stderr: {result.stderr}")
        if "INVALID" in result.stdout:
            return False
        if result.returncode == 0 and "OK" in result.stdout:
            return True
        raise ProverError(
            f"snarkjs verify exited with status {result.returncode}",
            detail=result.stderr.strip(),
        )

    async def _load(self, path: str) -> Any:
        try:
            return await asyncio.to_thread(_read_json, path)
        except (OSError, json.JSONDecodeError) as e:
            raise ProverError(f"Could not read snarkjs output {path}: {e}") from e
