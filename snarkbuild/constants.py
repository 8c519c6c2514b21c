import os
from dataclasses import dataclass


@dataclass
class Extension:
    JSON = ".json"
    CIRCOM = ".circom"
    VK_PROOF = ".vk_proof"
    VK_VERIFIER = ".vk_verifier"
    SOLIDITY = ".sol"


# Names of the external tools, looked up under node_modules/.bin first
CIRCOM_BINARY_NAME = "circom"
SNARKJS_BINARY_NAME = "snarkjs"
# Versions installed by the pre-flight checks when the tools are missing.
# The verifier generator and the setup/proof commands used here only exist
# in the pre-0.2 snarkjs CLI
CIRCOM_NPM_PACKAGE = "circom@0.0.35"
SNARKJS_NPM_PACKAGE = "snarkjs@0.1.20"
# Local install location for the tools
LOCAL_TOOLS_INSTALL_DIR = os.path.join(
    os.path.expanduser("~"), ".snarkbuild", "tools"
)
# Minimum Node.js major version needed by the tools
MINIMUM_NODE_MAJOR_VERSION = 12
# Default proving protocol passed to `snarkjs setup`
DEFAULT_PROTOCOL = "original"
SUPPORTED_PROTOCOLS = ("original", "groth", "kimleeoh")
# Output directory relative to the host project, when none is configured
DEFAULT_OUTPUT_SUBDIR = (".snarks",)
# Host events for the two integration modes
LEGACY_BUILD_EVENT = "build:beforeAll"
DIRECT_BUILD_EVENT = "compiler:contracts:compile:before"
LEGACY_CONTRACT_ADD_REQUEST = "config:contractsFiles:add"
# First host major version which hands the contract list to the plugin
DIRECT_REGISTRATION_MIN_HOST_VERSION = 5
