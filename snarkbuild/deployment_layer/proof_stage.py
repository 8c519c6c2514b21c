from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

import bittensor as bt

from snarkbuild.errors import ProofGenerationError, ProofInvalidError, ProverError
from snarkbuild.execution_layer.circuit import CompiledCircuit, Setup
from snarkbuild.execution_layer.proof_handlers.base_handler import ProvingBackend
from snarkbuild.deployment_layer.verifier_emitter import VerifierEmitter

PROOF_LOG_PREFIX = " Proof | "


class ProofStage:
    """
    Proves a circuit against its configured input and, only when the proof
    checks out, has its verifier contract generated.
    """

    def __init__(self, backend: ProvingBackend, emitter: VerifierEmitter):
        self.backend = backend
        self.emitter = emitter

    async def run(
        self,
        circuit: CompiledCircuit,
        setup: Setup,
        inputs: Mapping[str, dict[str, Any]],
        on_validated: Optional[Callable[[], None]] = None,
    ) -> Optional[str]:
        """
        Prove a circuit and emit its verifier.

        Args:
            circuit (CompiledCircuit): The loaded circuit.
            setup (Setup): The keys derived for it in this run.
            inputs (Mapping[str, dict]): Configured inputs keyed by basename.
            on_validated (Callable | None): Called once the proof has been
                validated, before the verifier is generated.

        Returns:
            str | None: The verifier contract path, or None when the circuit
            has no configured input and was skipped.

        Raises:
            ProofGenerationError: If the witness or proof cannot be computed.
            ProofInvalidError: If the proof does not validate.
            VerifierGenerationError: If the verifier cannot be generated.
        """
        basename = circuit.basename
        circuit_input = inputs.get(basename)
        if circuit_input is None:
            bt.logging.info(f"{PROOF_LOG_PREFIX}No input configured for {basename}, skipping")
            return None

        bt.logging.info(f"{PROOF_LOG_PREFIX}Generating proof for {basename}")
        try:
            witness = await circuit.calculate_witness(circuit_input)
            proof = await self.backend.gen_proof(setup.proving_key, witness)
            valid = await self.backend.is_valid(
                setup.verification_key, proof.proof_data, proof.public_signals
            )
        except ProverError as e:
            raise ProofGenerationError(
                f"Could not generate proof for {basename}: {e}",
                basename=basename,
                detail=e.detail,
            ) from e

        if not valid:
            raise ProofInvalidError(basename, circuit_input)

        bt.logging.success(f"{PROOF_LOG_PREFIX}Proof for {basename} is valid")
        if on_validated is not None:
            on_validated()
        return await self.emitter.emit(basename)
