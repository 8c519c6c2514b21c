from __future__ import annotations

import asyncio
import os

import bittensor as bt

from snarkbuild.errors import CommandError, CompileError
from snarkbuild.execution_layer.circuit import ArtifactPaths, CircuitSource
from snarkbuild.utils import command
from snarkbuild.utils.encoding import remove_if_exists

COMPILE_LOG_PREFIX = " Compile | "


class CircuitCompiler:
    """
    Runs the external circuit compiler, one source at a time.
    """

    def __init__(self, binary: str, output_dir: str):
        self.binary = binary
        self.output_dir = output_dir

    def output_path(self, basename: str) -> str:
        return ArtifactPaths(self.output_dir, basename).description

    async def compile(self, source: CircuitSource) -> str:
        """
        Compile a circuit source into its description artifact.

        Args:
            source (CircuitSource): The circuit to compile.

        Returns:
            str: The path of the written description.

        Raises:
            CompileError: If the compiler fails or produces no output. Any
            partially written description is removed.
        """
        output = self.output_path(source.basename)
        bt.logging.info(f"{COMPILE_LOG_PREFIX}Compiling {source.path} to {output}")
        try:
            await command.run_command(self.binary, source.path, "-o", output)
        except CommandError as e:
            await asyncio.to_thread(remove_if_exists, output)
            raise CompileError(
                f"Failed to compile circuit {source.basename}: {e.detail or e}",
                basename=source.basename,
                detail=e.detail,
            ) from e

        if not await asyncio.to_thread(os.path.isfile, output):
            raise CompileError(
                f"Compiler produced no description for {source.basename}",
                basename=source.basename,
            )
        bt.logging.debug(f"{COMPILE_LOG_PREFIX}Compiled {source.basename}")
        return output
