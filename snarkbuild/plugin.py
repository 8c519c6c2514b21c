from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Callable, Optional, Protocol

import bittensor as bt
from packaging import version

from snarkbuild.config import BuildConfig
from snarkbuild.constants import (
    DIRECT_BUILD_EVENT,
    DIRECT_REGISTRATION_MIN_HOST_VERSION,
    LEGACY_BUILD_EVENT,
    LEGACY_CONTRACT_ADD_REQUEST,
)
from snarkbuild.pipeline import Pipeline, RunReport, SnarkPipeline


class IntegrationMode(str, Enum):
    """
    How the pipeline hands its verifier contracts to the host build.
    """

    # Contracts are announced on the host's event bus, completion is a bare callback
    LEGACY_EVENT_BUS = "legacy_event_bus"
    # Contracts are appended to the list the host passes in and handed back
    DIRECT_REGISTRATION = "direct_registration"

    def __str__(self):
        return self.value

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value == value.lower():
                    return member
        raise ValueError(f"Cannot convert {value} to {cls.__name__}")

    @classmethod
    def for_host_version(cls, host_version: str) -> IntegrationMode:
        """
        Pick the mode a given host release expects.

        Args:
            host_version (str): The host's version string, e.g. "5.0.0-alpha.1".
        """
        try:
            major = version.parse(host_version).major
        except version.InvalidVersion as e:
            raise ValueError(f"Invalid host version: {host_version}") from e
        if major >= DIRECT_REGISTRATION_MIN_HOST_VERSION:
            return cls.DIRECT_REGISTRATION
        return cls.LEGACY_EVENT_BUS


class HostEvents(Protocol):
    def request(self, name: str, *args: Any) -> Any: ...


class BuildHost(Protocol):
    """
    The parts of the host build system the plugin talks to.
    """

    plugin_config: Optional[dict[str, Any]]
    events: HostEvents

    def dapp_path(self, *parts: str) -> str: ...

    def register_action_for_event(self, event: str, action: Callable) -> None: ...


class EventBusRegistrar:
    def __init__(self, events: HostEvents):
        self.events = events

    def register(self, path: str) -> None:
        self.events.request(LEGACY_CONTRACT_ADD_REQUEST, path)


class ContractListRegistrar:
    def __init__(self, contract_files: list[dict[str, Any]]):
        self.contract_files = contract_files

    def register(self, path: str) -> None:
        self.contract_files.append({"path": path})


class SnarkBuildPlugin:
    """
    Hooks the circuit pipeline into a host build, before the host compiles
    its own contracts.
    """

    def __init__(
        self,
        host: BuildHost,
        mode: IntegrationMode,
        config: Optional[BuildConfig] = None,
        pipeline: Optional[Pipeline] = None,
    ):
        self.host = host
        self.mode = IntegrationMode(mode)
        self.config = config or BuildConfig.from_plugin_config(
            host.plugin_config or {}, host.dapp_path()
        )
        self.pipeline = pipeline or SnarkPipeline.from_config(self.config)
        self._tasks: set[asyncio.Task] = set()
        self.register_events()

    def register_events(self):
        if self.mode == IntegrationMode.DIRECT_REGISTRATION:
            return self.host.register_action_for_event(
                DIRECT_BUILD_EVENT,
                lambda contract_files, callback: self._dispatch(
                    self.compile_and_generate_contracts(contract_files, callback)
                ),
            )
        self.host.register_action_for_event(
            LEGACY_BUILD_EVENT,
            lambda callback: self._dispatch(
                self.compile_and_generate_contracts([], callback)
            ),
        )

    def _dispatch(self, coro):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(coro)
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def registrar_for(self, contract_files: list[dict[str, Any]]):
        if self.mode == IntegrationMode.DIRECT_REGISTRATION:
            return ContractListRegistrar(contract_files)
        return EventBusRegistrar(self.host.events)

    async def compile_and_generate_contracts(
        self, contract_files: list[dict[str, Any]], callback: Callable
    ) -> RunReport:
        """
        Run the pipeline and signal the host exactly once, whether or not
        any circuit failed.
        """

        def signal(report: RunReport):
            if self.mode == IntegrationMode.DIRECT_REGISTRATION:
                callback(None, contract_files)
            else:
                callback()

        return await self.pipeline.run(
            self.config, self.registrar_for(contract_files), on_complete=signal
        )


def register(
    host: BuildHost,
    mode: Optional[IntegrationMode] = None,
    host_version: Optional[str] = None,
) -> Optional[SnarkBuildPlugin]:
    """
    Plugin entry point. Does nothing unless the host supplies a plugin config.

    Args:
        host (BuildHost): The host build system.
        mode (IntegrationMode | None): The integration mode to use.
        host_version (str | None): Used to pick the mode when none is given.
    """
    if not host.plugin_config:
        return None
    if mode is None:
        if host_version is None:
            raise ValueError("Either an integration mode or a host version is required")
        mode = IntegrationMode.for_host_version(host_version)
    bt.logging.debug(f"Registering circuit build plugin in {mode} mode")
    return SnarkBuildPlugin(host, mode)
