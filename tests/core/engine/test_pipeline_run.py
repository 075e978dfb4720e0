# tests/core/engine/test_pipeline_run.py
"""
Testes do caminho feliz do Pipeline (build + run + execute).

Os testes asseguram que:
- Stages executam estritamente na ordem declarada
- a saída de um Stage é a entrada do seguinte
- `execute` devolve traces e eventos estruturados
- a construção rejeita pipelines vazios, nomes duplicados e não-Stages

Invariantes:
    - run(3) no pipeline scale(2) → offset(1) é 7
"""

import pytest

try:
    from stageline.core.engine.engine import Pipeline, build
    from stageline.core.pipeline.stage import FunctionStage
    from stageline.core.pipeline.types import StageStatus
    from stageline.core.exceptions import DuplicateStageNameError, EmptyPipelineError, InvalidStageError
except Exception as e:  # noqa: BLE001
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que o engine esteja disponível para os testes.

    Falha imediatamente quando `build`/`Pipeline` não podem ser importados.
    """
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing engine. Implement:\n"
            "- src/stageline/core/engine/engine.py (Pipeline, build)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_run_applies_stages_in_order(scale_offset_pipeline):
    _require_imports()
    assert scale_offset_pipeline.run(3) == 7
    assert scale_offset_pipeline.stage_names == ["scale", "offset"]
    assert len(scale_offset_pipeline) == 2


def test_order_matters():
    _require_imports()
    p1 = build([FunctionStage("a", lambda x: x + "a"), FunctionStage("b", lambda x: x + "b")])
    p2 = build([FunctionStage("b", lambda x: x + "b"), FunctionStage("a", lambda x: x + "a")])
    assert p1.run("") == "ab"
    assert p2.run("") == "ba"


def test_execute_returns_traces_and_events(scale_offset_pipeline):
    """
    `execute` expõe o que aconteceu com cada Stage e o Event Log da run.
    """
    _require_imports()
    result = scale_offset_pipeline.execute(3)

    assert result.output == 7
    assert [t.stage for t in result.traces] == ["scale", "offset"]
    assert [t.position for t in result.traces] == [0, 1]
    assert all(t.status == StageStatus.EXECUTED for t in result.traces)
    assert all(len(t.config_fingerprint) == 64 for t in result.traces)
    assert result.executed == ["scale", "offset"]
    assert result.cache_hits == 0
    assert result.effective_config == {"scale": {"factor": 2}, "offset": {"amount": 1}}
    assert len(result.config_hash) == 64

    messages = [ev["message"] for ev in result.events]
    assert messages[0] == "run_started"
    assert messages[-1] == "run_finished"
    assert messages.count("stage_executed") == 2
    assert all(ev["run_id"] == result.run_id for ev in result.events)


def test_build_copies_stage_list(scale_offset_stages):
    _require_imports()
    p = build(scale_offset_stages)
    scale_offset_stages.pop()
    assert p.stage_names == ["scale", "offset"]
    assert isinstance(p, Pipeline)


def test_build_rejects_empty():
    _require_imports()
    with pytest.raises(EmptyPipelineError):
        build([])


def test_build_rejects_duplicate_names():
    _require_imports()
    with pytest.raises(DuplicateStageNameError) as exc:
        build([FunctionStage("a", lambda x: x), FunctionStage("a", lambda x: x)])
    assert exc.value.names == ["a"]


def test_build_rejects_invalid_stage():
    _require_imports()
    with pytest.raises(InvalidStageError):
        build([FunctionStage("a", lambda x: x), "not-a-stage"])
