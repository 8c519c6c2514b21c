from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import bittensor as bt
from pydantic import BaseModel, ConfigDict

from snarkbuild.constants import Extension

if TYPE_CHECKING:
    from snarkbuild.execution_layer.proof_handlers.base_handler import (
        ProvingBackend,
    )


class CircuitState(str, Enum):
    """
    States a circuit moves through during one pipeline run.
    """

    DISCOVERED = "discovered"
    COMPILED = "compiled"
    SET_UP = "set_up"
    SKIPPED = "skipped"
    PROOF_VALIDATED = "proof_validated"
    VERIFIER_EMITTED = "verifier_emitted"
    FAILED = "failed"

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class CircuitSource:
    """
    A discovered circuit source file.
    """

    path: str
    basename: str = field(init=False)

    def __post_init__(self):
        name = os.path.basename(self.path)
        if name.endswith(Extension.CIRCOM):
            name = name[: -len(Extension.CIRCOM)]
        object.__setattr__(self, "basename", name)


@dataclass
class ArtifactPaths:
    """
    Paths to every artifact the pipeline writes for one circuit.
    """

    output_dir: str
    basename: str
    description: str = field(init=False)
    proving_key: str = field(init=False)
    verification_key: str = field(init=False)
    verifier_contract: str = field(init=False)

    def __post_init__(self):
        self.description = self._path(Extension.JSON)
        self.proving_key = self._path(Extension.VK_PROOF)
        self.verification_key = self._path(Extension.VK_VERIFIER)
        self.verifier_contract = self._path(Extension.SOLIDITY)

    def _path(self, extension: str) -> str:
        return os.path.join(self.output_dir, f"{self.basename}{extension}")


class CircuitDefinition(BaseModel):
    """
    The compiler's circuit description. Only the fields every consumer relies
    on are checked; the rest of the document is kept as is.
    """

    model_config = ConfigDict(extra="allow")

    nPubInputs: int
    nOutputs: int
    nPrvInputs: int
    nSignals: int
    signals: list[Any]
    constraints: list[Any]


@dataclass
class CompiledCircuit:
    """
    An in-memory circuit able to compute witnesses through its backend.
    """

    basename: str
    definition: CircuitDefinition
    description_path: str
    backend: ProvingBackend

    async def calculate_witness(self, inputs: dict[str, Any]) -> list[Any]:
        bt.logging.debug(f"Calculating witness for {self.basename}")
        return await self.backend.calculate_witness(self, inputs)

    def __str__(self):
        return (
            f"CompiledCircuit(basename={self.basename}, "
            f"signals={self.definition.nSignals}, "
            f"constraints={len(self.definition.constraints)})"
        )


@dataclass
class Setup:
    proving_key: dict[str, Any]
    verification_key: dict[str, Any]


@dataclass
class Proof:
    proof_data: dict[str, Any]
    public_signals: list[Any]
