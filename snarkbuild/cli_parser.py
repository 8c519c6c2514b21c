import argparse
import json
import os
from typing import Optional

import bittensor as bt

from snarkbuild.config import BuildConfig, CircuitConfig
from snarkbuild.constants import DEFAULT_OUTPUT_SUBDIR, SUPPORTED_PROTOCOLS

parser: Optional[argparse.ArgumentParser] = None
config: Optional[bt.config] = None


DESCRIPTION = (
    "Compile circom circuits, run their trusted setup, prove them against the "
    "configured inputs and generate verifier contracts for the valid ones."
)


def init_config(args: Optional[list[str]] = None) -> bt.config:
    """
    Parse the command line into the global `config`.
    """
    global parser
    global config

    parser = argparse.ArgumentParser(description=DESCRIPTION, allow_abbrev=False)
    parser.add_argument(
        "--build-config",
        type=str,
        default=None,
        help="A JSON file of the form {\"circuits\": [...], \"inputs\": {...}} "
        "optionally carrying build settings.",
    )
    parser.add_argument(
        "--circuit",
        dest="circuits",
        action="append",
        default=None,
        help="A glob pattern locating circuit sources. Can be repeated.",
    )
    parser.add_argument(
        "--inputs",
        type=str,
        default=None,
        help="A JSON file mapping circuit basenames to their input signals.",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help=f"Where to write artifacts (default: {os.path.join(*DEFAULT_OUTPUT_SUBDIR)}).",
    )
    parser.add_argument(
        "--root-dir",
        type=str,
        default=None,
        help="Directory relative circuit patterns are resolved against.",
    )
    parser.add_argument(
        "--compiler", type=str, default=None, help="Path to the circom binary."
    )
    parser.add_argument(
        "--prover", type=str, default=None, help="Path to the snarkjs binary."
    )
    parser.add_argument(
        "--protocol",
        type=str,
        default=None,
        choices=SUPPORTED_PROTOCOLS,
        help="The proving protocol used for the trusted setup.",
    )
    parser.add_argument(
        "--prune-stale-verifiers",
        default=False,
        action="store_true",
        help="Delete verifier contracts that were not produced by this run.",
    )
    parser.add_argument(
        "--skip-preflight",
        default=bool(os.getenv("SNARKBUILD_SKIP_PREFLIGHT", False)),
        action="store_true",
        help="Do not check for (or install) node, circom and snarkjs.",
    )

    bt.logging.add_args(parser)
    config = bt.config(parser, args=args, strict=True)

    bt.logging(config=config, logging_dir=config.logging.logging_dir)
    bt.logging.enable_info()
    return config


def build_config_from_args(config: bt.config) -> BuildConfig:
    """
    Combine the optional config file with the command line; flags win.
    """
    overrides = {
        "output_dir": config.output_dir,
        "root_dir": config.root_dir,
        "compiler_binary": config.compiler,
        "prover_binary": config.prover,
        "protocol": config.protocol,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if config.prune_stale_verifiers:
        overrides["prune_stale_verifiers"] = True

    if config.build_config:
        build_config = BuildConfig.from_file(config.build_config, **overrides)
    else:
        build_config = BuildConfig.from_plugin_config({}, os.getcwd(), **overrides)

    updates = {}
    circuits = build_config.circuits
    if config.circuits:
        circuits = circuits.model_copy(update={"patterns": tuple(config.circuits)})
    if config.inputs:
        with open(config.inputs, "r", encoding="utf-8") as f:
            inputs = json.load(f)
        circuits = circuits.model_copy(
            update={"inputs": CircuitConfig(inputs=inputs).inputs}
        )
    if circuits is not build_config.circuits:
        updates["circuits"] = circuits
    return build_config.model_copy(update=updates) if updates else build_config
