# tests/core/pipeline/test_stage_protocol.py
"""
Testes do contrato de Stage (Protocol runtime_checkable).

Garante que implementações por duck typing, sem herança, satisfazem o
protocolo e que FunctionStage recebe a configuração efetiva em `apply`.
"""

import pytest

try:
    from stageline.core.pipeline.stage import FunctionStage, Stage
    from stageline.core.pipeline.types import StageKind
except Exception as e:  # noqa: BLE001
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing Stage protocol. Implement:\n"
            "- src/stageline/core/pipeline/stage.py (Stage, FunctionStage)\n"
            f"Import error: {_IMPORT_ERR}"
        )


class DuckStage:
    name = "duck"
    kind = "transform"
    config = {"k": 1}

    def apply(self, config, value):
        return value + config["k"]


def test_duck_typed_stage_satisfies_protocol():
    _require_imports()
    assert isinstance(DuckStage(), Stage)


def test_function_stage_satisfies_protocol_and_defaults():
    _require_imports()
    s = FunctionStage("double", lambda x, factor: x * factor, {"factor": 2})
    assert isinstance(s, Stage)
    assert s.kind == StageKind.TRANSFORM
    assert FunctionStage("noop", lambda x: x).config == {}


def test_function_stage_uses_effective_config_not_declared():
    """`apply` usa a configuração recebida, não a declarada."""
    _require_imports()
    s = FunctionStage("double", lambda x, factor: x * factor, {"factor": 2})
    assert s.apply({"factor": 5}, 3) == 15
    assert s.config == {"factor": 2}
