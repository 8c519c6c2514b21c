from .command import CommandResult, run_command
from .encoding import (
    dump_artifact,
    encode_artifact,
    remove_if_exists,
    write_artifact,
    write_text_atomic,
)
from .pre_flight import find_binary, resolve_binary, run_preflight_checks

__all__ = [
    "CommandResult",
    "run_command",
    "dump_artifact",
    "encode_artifact",
    "remove_if_exists",
    "write_artifact",
    "write_text_atomic",
    "find_binary",
    "resolve_binary",
    "run_preflight_checks",
]
