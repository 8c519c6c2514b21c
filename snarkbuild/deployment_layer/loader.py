from __future__ import annotations

import asyncio
import json

import bittensor as bt
from pydantic import ValidationError

from snarkbuild.errors import LoadError
from snarkbuild.execution_layer.circuit import (
    ArtifactPaths,
    CircuitDefinition,
    CompiledCircuit,
)
from snarkbuild.execution_layer.proof_handlers.base_handler import ProvingBackend


def _read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


class CircuitLoader:
    """
    Turns persisted circuit descriptions back into circuits.
    """

    def __init__(self, output_dir: str, backend: ProvingBackend):
        self.output_dir = output_dir
        self.backend = backend

    async def load(self, basename: str) -> CompiledCircuit:
        """
        Load the compiled circuit for a basename.

        Raises:
            LoadError: If the description is missing, unreadable or malformed.
        """
        path = ArtifactPaths(self.output_dir, basename).description
        try:
            raw = await asyncio.to_thread(_read_text, path)
        except OSError as e:
            raise LoadError(
                f"Could not read circuit description {path}: {e}",
                basename=basename,
                detail=str(e),
            ) from e

        try:
            definition = CircuitDefinition.model_validate(json.loads(raw))
        except json.JSONDecodeError as e:
            raise LoadError(
                f"Circuit description {path} is not valid JSON: {e}",
                basename=basename,
                detail=str(e),
            ) from e
        except ValidationError as e:
            raise LoadError(
                f"Circuit description {path} is malformed",
                basename=basename,
                detail=str(e),
            ) from e

        circuit = CompiledCircuit(
            basename=basename,
            definition=definition,
            description_path=path,
            backend=self.backend,
        )
        bt.logging.debug(f"Loaded {circuit}")
        return circuit
