from __future__ import annotations

import json


class SnarkBuildError(Exception):
    """
    Base class for every failure raised by the circuit build pipeline.

    Attributes:
        basename (str | None): The circuit the failure belongs to, if any.
        detail (str): The underlying tool or parse failure.
    """

    stage = "pipeline"

    def __init__(self, message: str, basename: str | None = None, detail: str = ""):
        super().__init__(message)
        self.basename = basename
        self.detail = detail


class CommandError(SnarkBuildError):
    """An external process exited with an error or could not be started."""

    stage = "command"

    def __init__(self, command: list[str], returncode: int | None, detail: str = ""):
        self.command = command
        self.returncode = returncode
        message = f"Command {' '.join(command)} failed"
        if returncode is not None:
            message += f" with exit status {returncode}"
        if detail:
            message += f": {detail}"
        super().__init__(message, detail=detail)


class ProverError(SnarkBuildError):
    """The proving backend could not complete a call."""

    stage = "prover"


class DiscoveryError(SnarkBuildError):
    stage = "discovery"


class CompileError(SnarkBuildError):
    stage = "compile"


class LoadError(SnarkBuildError):
    stage = "load"


class SetupError(SnarkBuildError):
    stage = "setup"


class ProofGenerationError(SnarkBuildError):
    stage = "proof"


class ProofInvalidError(SnarkBuildError):
    stage = "proof"

    def __init__(self, basename: str, inputs: dict):
        self.inputs = inputs
        super().__init__(
            f"The proof is not valid for {basename} with inputs: "
            f"{json.dumps(inputs, default=str)}",
            basename=basename,
        )


class VerifierGenerationError(SnarkBuildError):
    stage = "verifier"


class RegistrationError(SnarkBuildError):
    stage = "registration"
