from __future__ import annotations

import asyncio
import os
import traceback
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Optional

import bittensor as bt

from snarkbuild.config import BuildConfig
from snarkbuild.constants import CIRCOM_BINARY_NAME, SNARKJS_BINARY_NAME
from snarkbuild.deployment_layer import (
    CircuitCompiler,
    CircuitLoader,
    ContractRegistrar,
    ProofStage,
    SetupStage,
    VerifierEmitter,
    discover_circuits,
    prune_stale_verifiers,
    register_verifier_contracts,
    split_duplicates,
)
from snarkbuild.errors import DiscoveryError, SnarkBuildError
from snarkbuild.execution_layer.circuit import CircuitSource, CircuitState
from snarkbuild.execution_layer.proof_handlers import ProvingBackend, SnarkjsHandler
from snarkbuild.utils.pre_flight import resolve_binary


@dataclass
class CircuitOutcome:
    """
    Where one circuit ended up after a run.

    Attributes:
        basename (str): The circuit's basename.
        source (str): Path of the circuit source.
        state (CircuitState): The current, or final, state.
        last_state (CircuitState): The last state reached before failing.
        error (Exception | None): The failure, if the circuit failed.
        verifier_contract (str | None): The emitted contract, if any.
    """

    basename: str
    source: str
    state: CircuitState = CircuitState.DISCOVERED
    last_state: CircuitState = CircuitState.DISCOVERED
    error: Exception | None = None
    verifier_contract: str | None = None

    def advance(self, state: CircuitState):
        bt.logging.trace(f"{self.basename}: {self.state} -> {state}")
        self.state = state
        self.last_state = state

    def fail(self, error: Exception):
        self.error = error
        self.state = CircuitState.FAILED


@dataclass
class RunReport:
    outcomes: dict[str, CircuitOutcome] = field(default_factory=dict)
    rejected: list[CircuitOutcome] = field(default_factory=list)
    registered: list[str] = field(default_factory=list)
    pruned: list[str] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)

    def _with_state(self, state: CircuitState) -> list[str]:
        return [b for b, o in self.outcomes.items() if o.state == state]

    @property
    def emitted(self) -> list[str]:
        return self._with_state(CircuitState.VERIFIER_EMITTED)

    @property
    def skipped(self) -> list[str]:
        return self._with_state(CircuitState.SKIPPED)

    @property
    def failed(self) -> list[CircuitOutcome]:
        return [
            o for o in self.outcomes.values() if o.state == CircuitState.FAILED
        ] + self.rejected

    @property
    def ok(self) -> bool:
        return not self.failed and not self.errors


class Pipeline(ABC):
    """
    A circuit build pipeline, as seen by whatever drives it.
    """

    @abstractmethod
    async def run(
        self,
        config: BuildConfig,
        registrar: Optional[ContractRegistrar] = None,
        on_complete: Optional[Callable[[RunReport], None]] = None,
    ) -> RunReport:
        """
        Build every configured circuit.

        Args:
            config (BuildConfig): What to build and where.
            registrar (ContractRegistrar | None): Receives the verifier contracts
                once all circuits are done.
            on_complete (Callable | None): Invoked exactly once when the run
                ends, whatever happened.

        Returns:
            RunReport: The outcome of every circuit.
        """


class SnarkPipeline(Pipeline):
    """
    Compiles, sets up, proves and emits verifiers for circuits.

    Circuits run concurrently and independently; a failing circuit is
    reported and never stops its siblings.
    """

    def __init__(
        self,
        backend: Optional[ProvingBackend] = None,
        compiler_binary: Optional[str] = None,
        prover_binary: Optional[str] = None,
        project_dir: Optional[str] = None,
    ):
        self.prover_binary = resolve_binary(
            prover_binary, SNARKJS_BINARY_NAME, project_dir
        )
        self.compiler_binary = resolve_binary(
            compiler_binary, CIRCOM_BINARY_NAME, project_dir
        )
        self.backend = backend

    @classmethod
    def from_config(cls, config: BuildConfig) -> SnarkPipeline:
        return cls(
            compiler_binary=config.compiler_binary,
            prover_binary=config.prover_binary,
            project_dir=config.root_dir,
        )

    def _stages(self, config: BuildConfig):
        backend = self.backend or SnarkjsHandler(
            self.prover_binary, protocol=config.protocol
        )
        output_dir = config.output_dir
        emitter = VerifierEmitter(self.prover_binary, output_dir)
        return (
            CircuitCompiler(self.compiler_binary, output_dir),
            CircuitLoader(output_dir, backend),
            SetupStage(output_dir, backend),
            ProofStage(backend, emitter),
        )

    async def run(
        self,
        config: BuildConfig,
        registrar: Optional[ContractRegistrar] = None,
        on_complete: Optional[Callable[[RunReport], None]] = None,
    ) -> RunReport:
        report = RunReport()
        try:
            await self._run(config, registrar, report)
        except SnarkBuildError as e:
            bt.logging.error(str(e))
            report.errors.append(e)
        except Exception as e:
            bt.logging.error(f"Unexpected error during circuit build: {e}")
            bt.logging.debug(traceback.format_exc())
            report.errors.append(e)
        finally:
            if on_complete is not None:
                on_complete(report)
        return report

    async def _run(
        self,
        config: BuildConfig,
        registrar: Optional[ContractRegistrar],
        report: RunReport,
    ):
        if not config.patterns:
            bt.logging.info("No circuits configured, nothing to build")
            return

        await asyncio.to_thread(os.makedirs, config.output_dir, exist_ok=True)

        bt.logging.info("Compiling circuits...")
        sources = await asyncio.to_thread(
            discover_circuits, config.patterns, config.root_dir
        )
        sources, duplicates = split_duplicates(sources)
        for duplicate in duplicates:
            outcome = CircuitOutcome(duplicate.basename, duplicate.path)
            outcome.fail(
                DiscoveryError(
                    f"Duplicate circuit basename {duplicate.basename} ({duplicate.path})",
                    basename=duplicate.basename,
                )
            )
            report.rejected.append(outcome)

        if not sources:
            bt.logging.warning("No circuits matched the configured patterns")
            return

        stages = self._stages(config)
        outcomes = await asyncio.gather(
            *(self._run_circuit(source, config, stages) for source in sources)
        )
        report.outcomes.update((outcome.basename, outcome) for outcome in outcomes)
        bt.logging.info(
            f"Built {len(sources)} circuit(s): {len(report.emitted)} verifier(s) emitted, "
            f"{len(report.skipped)} skipped, {len(report.failed)} failed"
        )

        if config.prune_stale_verifiers:
            report.pruned = await prune_stale_verifiers(
                config.output_dir, report.emitted
            )

        if registrar is not None:
            report.registered = await register_verifier_contracts(
                config.output_dir, registrar
            )

    async def _run_circuit(
        self, source: CircuitSource, config: BuildConfig, stages
    ) -> CircuitOutcome:
        compiler, loader, setup_stage, proof_stage = stages
        outcome = CircuitOutcome(source.basename, source.path)
        try:
            await compiler.compile(source)
            outcome.advance(CircuitState.COMPILED)

            circuit = await loader.load(source.basename)
            setup = await setup_stage.generate(circuit)
            outcome.advance(CircuitState.SET_UP)

            contract = await proof_stage.run(
                circuit,
                setup,
                config.inputs,
                on_validated=lambda: outcome.advance(CircuitState.PROOF_VALIDATED),
            )
            if contract is None:
                outcome.advance(CircuitState.SKIPPED)
            else:
                outcome.verifier_contract = contract
                outcome.advance(CircuitState.VERIFIER_EMITTED)
        except SnarkBuildError as e:
            bt.logging.error(str(e))
            if e.detail:
                bt.logging.debug(f"{source.basename} error details: {e.detail}")
            outcome.fail(e)
        except Exception as e:
            bt.logging.error(f"Unexpected error building circuit {source.basename}: {e}")
            bt.logging.debug(traceback.format_exc())
            outcome.fail(e)
        return outcome
