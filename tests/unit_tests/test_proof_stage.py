import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from snarkbuild.deployment_layer.loader import CircuitLoader
from snarkbuild.deployment_layer.proof_stage import ProofStage
from snarkbuild.deployment_layer.setup_stage import SetupStage
from snarkbuild.errors import ProofGenerationError, ProofInvalidError, ProverError


@pytest.fixture
def emitter():
    emitter = MagicMock()
    emitter.emit = AsyncMock(side_effect=lambda basename: f"/out/{basename}.sol")
    return emitter


@pytest_asyncio.fixture
async def prepared(backend, output_dir, write_description):
    write_description("a")
    circuit = await CircuitLoader(output_dir, backend).load("a")
    setup = await SetupStage(output_dir, backend).generate(circuit)
    return circuit, setup


@pytest.mark.asyncio
async def test_circuit_without_input_is_skipped(backend, emitter, prepared):
    circuit, setup = prepared

    result = await ProofStage(backend, emitter).run(circuit, setup, {"b": {"x": 1}})

    assert result is None
    assert backend.witnesses == []
    assert backend.proofs == []
    emitter.emit.assert_not_called()


@pytest.mark.asyncio
async def test_valid_proof_emits_verifier(backend, emitter, prepared):
    circuit, setup = prepared
    validated = MagicMock()

    result = await ProofStage(backend, emitter).run(
        circuit, setup, {"a": {"x": 1}}, on_validated=validated
    )

    assert result == "/out/a.sol"
    assert backend.witnesses == [("a", {"x": 1})]
    assert backend.validations == ["a"]
    validated.assert_called_once_with()
    emitter.emit.assert_awaited_once_with("a")


@pytest.mark.asyncio
async def test_invalid_proof_raises_and_suppresses_verifier(backend, emitter, prepared):
    circuit, setup = prepared
    backend.invalid.add("a")
    validated = MagicMock()

    with pytest.raises(ProofInvalidError) as excinfo:
        await ProofStage(backend, emitter).run(
            circuit, setup, {"a": {"x": 1}}, on_validated=validated
        )

    assert excinfo.value.basename == "a"
    assert excinfo.value.inputs == {"x": 1}
    assert str(excinfo.value) == (
        f"The proof is not valid for a with inputs: {json.dumps({'x': 1})}"
    )
    validated.assert_not_called()
    emitter.emit.assert_not_called()


@pytest.mark.asyncio
async def test_empty_input_object_is_still_proven(backend, emitter, prepared):
    circuit, setup = prepared

    await ProofStage(backend, emitter).run(circuit, setup, {"a": {}})

    assert backend.witnesses == [("a", {})]
    emitter.emit.assert_awaited_once_with("a")


@pytest.mark.asyncio
async def test_witness_failure(backend, emitter, prepared):
    circuit, setup = prepared
    backend.calculate_witness = AsyncMock(side_effect=ProverError("bad input"))

    with pytest.raises(ProofGenerationError) as excinfo:
        await ProofStage(backend, emitter).run(circuit, setup, {"a": {"y": 2}})

    assert excinfo.value.basename == "a"
    emitter.emit.assert_not_called()
