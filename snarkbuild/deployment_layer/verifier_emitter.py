from __future__ import annotations

import asyncio
import os

import bittensor as bt

from snarkbuild.errors import CommandError, VerifierGenerationError
from snarkbuild.execution_layer.circuit import ArtifactPaths
from snarkbuild.utils import command
from snarkbuild.utils.encoding import remove_if_exists


class VerifierEmitter:
    """
    Generates verifier contract sources from persisted verification keys.
    """

    def __init__(self, binary: str, output_dir: str):
        self.binary = binary
        self.output_dir = output_dir

    async def emit(self, basename: str) -> str:
        """
        Generate the verifier contract for a circuit.

        Returns:
            str: The path of the contract source.

        Raises:
            VerifierGenerationError: If the generator fails or writes nothing.
        """
        paths = ArtifactPaths(self.output_dir, basename)
        bt.logging.info(f"Generating verifier contract for {basename}")
        try:
            await command.run_command(
                self.binary,
                "generateverifier",
                "--vk",
                paths.verification_key,
                "-v",
                paths.verifier_contract,
            )
        except CommandError as e:
            await asyncio.to_thread(remove_if_exists, paths.verifier_contract)
            raise VerifierGenerationError(
                f"Failed to generate verifier for {basename}: {e.detail or e}",
                basename=basename,
                detail=e.detail,
            ) from e

        if not await asyncio.to_thread(os.path.isfile, paths.verifier_contract):
            raise VerifierGenerationError(
                f"Verifier generator produced no contract for {basename}",
                basename=basename,
            )
        bt.logging.success(f"Verifier contract written to {paths.verifier_contract}")
        return paths.verifier_contract
