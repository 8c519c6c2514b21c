from __future__ import annotations

import asyncio

import bittensor as bt

from snarkbuild.errors import ProverError, SetupError
from snarkbuild.execution_layer.circuit import ArtifactPaths, CompiledCircuit, Setup
from snarkbuild.execution_layer.proof_handlers.base_handler import ProvingBackend
from snarkbuild.utils.encoding import remove_if_exists, write_artifact

SETUP_LOG_PREFIX = " Setup | "


class SetupStage:
    """
    Derives and persists the proving and verification keys of a circuit.
    """

    def __init__(self, output_dir: str, backend: ProvingBackend):
        self.output_dir = output_dir
        self.backend = backend

    async def generate(self, circuit: CompiledCircuit) -> Setup:
        """
        Run the trusted setup for a circuit and persist both keys, replacing
        any keys from a previous run.

        The circuit's verifier contract, if one exists, was built from the
        keys being replaced and is deleted first.

        Returns:
            Setup: The freshly derived keys.

        Raises:
            SetupError: If the setup fails or the keys cannot be written.
        """
        paths = ArtifactPaths(self.output_dir, circuit.basename)
        bt.logging.info(f"{SETUP_LOG_PREFIX}Generating setup for {circuit.basename}")
        try:
            setup = await self.backend.setup(circuit)
        except ProverError as e:
            raise SetupError(
                f"Trusted setup failed for {circuit.basename}: {e}",
                basename=circuit.basename,
                detail=e.detail,
            ) from e

        try:
            if await asyncio.to_thread(remove_if_exists, paths.verifier_contract):
                bt.logging.debug(
                    f"{SETUP_LOG_PREFIX}Removed stale verifier {paths.verifier_contract}"
                )
            await asyncio.gather(
                asyncio.to_thread(write_artifact, paths.proving_key, setup.proving_key),
                asyncio.to_thread(
                    write_artifact, paths.verification_key, setup.verification_key
                ),
            )
        except OSError as e:
            raise SetupError(
                f"Could not persist setup for {circuit.basename}: {e}",
                basename=circuit.basename,
                detail=str(e),
            ) from e

        bt.logging.debug(
            f"{SETUP_LOG_PREFIX}Wrote {paths.proving_key} and {paths.verification_key}"
        )
        return setup
