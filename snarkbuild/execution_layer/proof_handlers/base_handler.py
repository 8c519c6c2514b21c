from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from snarkbuild.execution_layer.circuit import CompiledCircuit, Proof, Setup


class ProvingBackend(ABC):
    """
    An abstract base class for the proving system the pipeline delegates the
    zero-knowledge math to.
    """

    @abstractmethod
    async def setup(self, circuit: CompiledCircuit) -> Setup:
        """
        Run the trusted setup for a circuit.

        Args:
            circuit (CompiledCircuit): The circuit to derive keys for.

        Returns:
            Setup: The proving and verification keys.
        """

    @abstractmethod
    async def calculate_witness(
        self, circuit: CompiledCircuit, inputs: dict[str, Any]
    ) -> list[Any]:
        """
        Compute the full signal assignment of a circuit for the given inputs.

        Args:
            circuit (CompiledCircuit): The circuit to evaluate.
            inputs (dict): The input signals.

        Returns:
            list: The witness, one value per signal.
        """

    @abstractmethod
    async def gen_proof(self, proving_key: dict[str, Any], witness: list[Any]) -> Proof:
        """
        Generate a proof for a witness.

        Args:
            proving_key (dict): The circuit's proving key.
            witness (list): The witness computed for the circuit.

        Returns:
            Proof: The proof and its public signals.
        """

    @abstractmethod
    async def is_valid(
        self,
        verification_key: dict[str, Any],
        proof: dict[str, Any],
        public_signals: list[Any],
    ) -> bool:
        """
        Check a proof against a verification key and public signals.

        Returns:
            bool: Whether the proof is valid.
        """
