from __future__ import annotations

import json
import os
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from snarkbuild.constants import (
    DEFAULT_OUTPUT_SUBDIR,
    DEFAULT_PROTOCOL,
    SUPPORTED_PROTOCOLS,
)


class CircuitConfig(BaseModel):
    """
    Which circuits to build and the input signals to prove them with.

    Attributes:
        patterns (tuple[str, ...]): Glob patterns locating circuit sources, in
            resolution order. Supplied by hosts under the `circuits` key.
        inputs (dict[str, dict]): Input signals keyed by circuit basename.
            Circuits without an entry are set up but never proven.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    patterns: tuple[str, ...] = Field(default=(), alias="circuits")
    inputs: dict[str, dict[str, Any]] = Field(default_factory=dict)

    @field_validator("patterns", mode="before")
    @classmethod
    def _none_means_no_patterns(cls, value):
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,)
        return value

    @field_validator("inputs", mode="before")
    @classmethod
    def _none_means_no_inputs(cls, value):
        return {} if value is None else value


class BuildConfig(BaseModel):
    """
    Everything a pipeline run needs: the circuits plus where to find the
    tools and where to put the artifacts.
    """

    model_config = ConfigDict(frozen=True)

    circuits: CircuitConfig = Field(default_factory=CircuitConfig)
    output_dir: str
    root_dir: Optional[str] = None
    compiler_binary: Optional[str] = None
    prover_binary: Optional[str] = None
    protocol: str = DEFAULT_PROTOCOL
    prune_stale_verifiers: bool = False

    @field_validator("protocol")
    @classmethod
    def _known_protocol(cls, value: str) -> str:
        if value not in SUPPORTED_PROTOCOLS:
            raise ValueError(
                f"Unsupported protocol {value}, expected one of {', '.join(SUPPORTED_PROTOCOLS)}"
            )
        return value

    @classmethod
    def from_plugin_config(
        cls, plugin_config: dict[str, Any], project_path: str, **overrides
    ) -> BuildConfig:
        """
        Build the configuration from a host-supplied plugin config of the form
        `{"circuits": [...], "inputs": {...}}`, optionally carrying build
        settings next to them.

        Args:
            plugin_config (dict): The host's plugin configuration.
            project_path (str): The host project's root; relative paths and
                the default output directory are resolved against it.
        """
        settings = dict(plugin_config)
        circuits = CircuitConfig.model_validate(
            {
                "circuits": settings.pop("circuits", None),
                "inputs": settings.pop("inputs", None),
            }
        )
        settings.update(overrides)
        output_dir = settings.pop("output_dir", None) or os.path.join(
            project_path, *DEFAULT_OUTPUT_SUBDIR
        )
        settings.setdefault("root_dir", project_path)
        return cls(
            circuits=circuits,
            output_dir=os.path.join(project_path, output_dir),
            **settings,
        )

    @classmethod
    def from_file(cls, config_path: str, **overrides) -> BuildConfig:
        """
        Create a BuildConfig from a JSON file laid out like a plugin config.
        Relative paths inside the file are resolved against its directory.

        Args:
            config_path (str): Path to the JSON file.

        Returns:
            BuildConfig: The parsed configuration.
        """
        with open(config_path, "r", encoding="utf-8") as f:
            plugin_config = json.load(f)
        project_path = os.path.dirname(os.path.abspath(config_path))
        return cls.from_plugin_config(plugin_config, project_path, **overrides)

    @property
    def patterns(self) -> tuple[str, ...]:
        return self.circuits.patterns

    @property
    def inputs(self) -> dict[str, dict[str, Any]]:
        return self.circuits.inputs
