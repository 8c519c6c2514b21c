from snarkbuild.config import BuildConfig, CircuitConfig
from snarkbuild.errors import (
    CompileError,
    DiscoveryError,
    LoadError,
    ProofGenerationError,
    ProofInvalidError,
    RegistrationError,
    SetupError,
    SnarkBuildError,
    VerifierGenerationError,
)
from snarkbuild.execution_layer.circuit import CircuitState
from snarkbuild.pipeline import CircuitOutcome, Pipeline, RunReport, SnarkPipeline
from snarkbuild.plugin import IntegrationMode, SnarkBuildPlugin, register

__version__ = "0.1.0"

__all__ = [
    "BuildConfig",
    "CircuitConfig",
    "CompileError",
    "DiscoveryError",
    "LoadError",
    "ProofGenerationError",
    "ProofInvalidError",
    "RegistrationError",
    "SetupError",
    "SnarkBuildError",
    "VerifierGenerationError",
    "CircuitState",
    "CircuitOutcome",
    "Pipeline",
    "RunReport",
    "SnarkPipeline",
    "IntegrationMode",
    "SnarkBuildPlugin",
    "register",
]
