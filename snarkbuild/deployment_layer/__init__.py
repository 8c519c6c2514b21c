from .compiler import CircuitCompiler
from .discovery import discover_circuits, split_duplicates
from .loader import CircuitLoader
from .proof_stage import ProofStage
from .registration import (
    ContractRegistrar,
    list_verifier_contracts,
    prune_stale_verifiers,
    register_verifier_contracts,
)
from .setup_stage import SetupStage
from .verifier_emitter import VerifierEmitter

__all__ = [
    "CircuitCompiler",
    "discover_circuits",
    "split_duplicates",
    "CircuitLoader",
    "ProofStage",
    "ContractRegistrar",
    "list_verifier_contracts",
    "prune_stale_verifiers",
    "register_verifier_contracts",
    "SetupStage",
    "VerifierEmitter",
]
