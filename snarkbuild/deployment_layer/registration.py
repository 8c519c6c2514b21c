from __future__ import annotations

import asyncio
import os
from typing import Iterable, Protocol

import bittensor as bt

from snarkbuild.constants import Extension
from snarkbuild.errors import RegistrationError
from snarkbuild.utils.encoding import remove_if_exists


class ContractRegistrar(Protocol):
    """
    Receives verifier contract sources on behalf of the host build.
    """

    def register(self, path: str) -> None: ...


def _list_contracts(output_dir: str) -> list[str]:
    if not os.path.isdir(output_dir):
        return []
    return sorted(
        os.path.join(output_dir, filename)
        for filename in os.listdir(output_dir)
        if os.path.splitext(filename)[1] == Extension.SOLIDITY
    )


async def list_verifier_contracts(output_dir: str) -> list[str]:
    return await asyncio.to_thread(_list_contracts, output_dir)


async def prune_stale_verifiers(output_dir: str, keep: Iterable[str]) -> list[str]:
    """
    Delete verifier contracts whose basename is not in `keep`.

    Returns:
        list[str]: The removed contract paths.
    """
    keep = set(keep)
    removed = []
    for path in await list_verifier_contracts(output_dir):
        basename = os.path.splitext(os.path.basename(path))[0]
        if basename in keep:
            continue
        if await asyncio.to_thread(remove_if_exists, path):
            bt.logging.warning(f"Removed stale verifier contract {path}")
            removed.append(path)
    return removed


async def register_verifier_contracts(
    output_dir: str, registrar: ContractRegistrar
) -> list[str]:
    """
    Hand every verifier contract in the output directory to the host.

    Contracts are not checked here; whatever is in the directory is registered.

    Returns:
        list[str]: The registered contract paths.

    Raises:
        RegistrationError: If the host rejects a contract.
    """
    contracts = await list_verifier_contracts(output_dir)
    for path in contracts:
        basename = os.path.splitext(os.path.basename(path))[0]
        try:
            registrar.register(path)
        except Exception as e:
            raise RegistrationError(
                f"Could not register verifier contract {path}: {e}",
                basename=basename,
                detail=str(e),
            ) from e
        bt.logging.debug(f"Registered verifier contract {path}")
    if contracts:
        bt.logging.info(f"Registered {len(contracts)} verifier contract(s)")
    return contracts
