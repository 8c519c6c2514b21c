import os
import shutil
import subprocess
import traceback
from collections import OrderedDict
from functools import partial
from typing import Optional

import bittensor as bt

from snarkbuild.constants import (
    CIRCOM_BINARY_NAME,
    CIRCOM_NPM_PACKAGE,
    LOCAL_TOOLS_INSTALL_DIR,
    MINIMUM_NODE_MAJOR_VERSION,
    SNARKJS_BINARY_NAME,
    SNARKJS_NPM_PACKAGE,
)

PREFLIGHT_LOG_PREFIX = " PreFlight | "


def find_binary(name: str, cwd: Optional[str] = None) -> Optional[str]:
    """
    Locate an npm-installed tool.

    Walks up from `cwd` looking for `node_modules/.bin/<name>`, then tries the
    local tools directory and finally the PATH.

    Returns:
        str | None: The path to the executable, or None if it is nowhere to be found.
    """
    directory = os.path.abspath(cwd or os.getcwd())
    while True:
        candidate = os.path.join(directory, "node_modules", ".bin", name)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(directory)
        if parent == directory:
            break
        directory = parent

    local = local_binary_path(name)
    if os.path.isfile(local):
        return local
    return shutil.which(name)


def local_binary_path(name: str) -> str:
    return os.path.join(LOCAL_TOOLS_INSTALL_DIR, "node_modules", ".bin", name)


def resolve_binary(
    configured: Optional[str], name: str, cwd: Optional[str] = None
) -> str:
    """
    Return the configured executable, or the one located from `cwd`, or the
    bare name so a missing tool surfaces as a command failure for the stage
    that needs it.
    """
    if configured:
        return configured
    return find_binary(name, cwd) or name


def run_preflight_checks(
    compiler_binary: Optional[str] = None,
    prover_binary: Optional[str] = None,
    project_dir: Optional[str] = None,
):
    """
    Make sure the external tools the pipeline shells out to are usable.
    Checks:
    - Node.js is recent enough
    - circom is installed
    - snarkjs is installed

    Tools that were explicitly configured are only checked, never installed.

    Raises:
        Exception: If any of the pre-flight checks fail.
    """
    preflight_checks = OrderedDict(
        {
            "Ensuring Node.js version": ensure_nodejs_version,
            "Checking circom installation": partial(
                ensure_tool_installed,
                CIRCOM_BINARY_NAME,
                CIRCOM_NPM_PACKAGE,
                compiler_binary,
                ["--help"],
                project_dir,
            ),
            "Checking snarkjs installation": partial(
                ensure_tool_installed,
                SNARKJS_BINARY_NAME,
                SNARKJS_NPM_PACKAGE,
                prover_binary,
                ["--help"],
                project_dir,
            ),
        }
    )

    bt.logging.info(f"{PREFLIGHT_LOG_PREFIX}Running pre-flight checks")

    for check_name, check_function in preflight_checks.items():
        bt.logging.info(f"{PREFLIGHT_LOG_PREFIX}{check_name}")
        try:
            check_function()
            bt.logging.success(
                f"{PREFLIGHT_LOG_PREFIX}{check_name} completed successfully"
            )
        except Exception as e:
            bt.logging.error(f"Failed {check_name.lower()}: {e}")
            bt.logging.debug(
                f"{PREFLIGHT_LOG_PREFIX}{check_name} error details: {traceback.format_exc()}"
            )
            raise

    bt.logging.info(f"{PREFLIGHT_LOG_PREFIX}Pre-flight checks completed.")


def ensure_tool_installed(
    name: str,
    npm_package: str,
    configured: Optional[str] = None,
    check_args: Optional[list[str]] = None,
    project_dir: Optional[str] = None,
):
    """
    Ensure an npm tool can be executed, installing it into the local tools
    directory when it cannot be found.
    """
    binary = configured or find_binary(name, project_dir)
    if binary:
        # The legacy CLIs exit non-zero on --help, so only a missing
        # executable counts as a failure here
        try:
            # trunk-ignore(bandit/B603)
            subprocess.run(
                [binary, *(check_args or [])],
                check=False,
                capture_output=True,
                text=True,
            )
            bt.logging.info(f"{PREFLIGHT_LOG_PREFIX}{name} is available at {binary}")
            return
        except (FileNotFoundError, PermissionError) as e:
            if configured:
                raise RuntimeError(
                    f"Configured {name} binary {configured} cannot be executed."
                ) from e

    bt.logging.warning(f"{PREFLIGHT_LOG_PREFIX}{name} not found. Attempting to install...")
    try:
        os.makedirs(LOCAL_TOOLS_INSTALL_DIR, exist_ok=True)
        # trunk-ignore(bandit/B603)
        # trunk-ignore(bandit/B607)
        subprocess.run(
            ["npm", "install", "--prefix", LOCAL_TOOLS_INSTALL_DIR, npm_package],
            check=True,
        )
        bt.logging.info(
            f"{PREFLIGHT_LOG_PREFIX}{name} has been installed in {LOCAL_TOOLS_INSTALL_DIR}."
        )
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        bt.logging.error(f"Failed to install {name}: {e}")
        raise RuntimeError(
            f"{name} installation failed. Please install it manually."
        ) from e


def ensure_nodejs_version():
    """
    Ensure that a recent enough Node.js is installed.
    """
    try:
        node_version = subprocess.check_output(["node", "--version"]).decode().strip()
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        raise RuntimeError(
            f"Node.js >= {MINIMUM_NODE_MAJOR_VERSION} is required but not installed."
        ) from e

    major = int(node_version.lstrip("v").split(".")[0])
    if major < MINIMUM_NODE_MAJOR_VERSION:
        raise RuntimeError(
            f"Node.js >= {MINIMUM_NODE_MAJOR_VERSION} is required, found {node_version}."
        )
    bt.logging.info(f"{PREFLIGHT_LOG_PREFIX}Node.js version {node_version} is installed.")
