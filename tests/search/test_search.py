# tests/search/test_search.py
"""
Testes da busca de hiperparâmetros com validação cruzada.

Os testes asseguram que:
- a configuração que minimiza o erro é ranqueada primeiro
- a busca é determinística (inclusive desempates)
- overrides de candidato não reconfiguram o Pipeline original
- Stages não afetados pelos parâmetros variados reaproveitam o cache
- candidatos que falham ficam fora do ranking; todos falhando → erro
- scores agregados não finitos contam como falha do candidato
- paralelismo por threads não altera o resultado
- refit produz um Pipeline independente com os melhores parâmetros

Cenário canônico: scale(factor) → offset(amount=1) sobre X, target 3*X + 1.
"""

import numpy as np
import pytest

try:
    from stageline.core.engine.engine import build
    from stageline.core.exceptions import SearchExhaustedError, UnknownParameterError
    from stageline.core.errors import CANDIDATE_FAILED
    from stageline.core.pipeline.stage import FunctionStage
    from stageline.search.runner import search
    from stageline.search.scoring import negate
    from stageline.search.splits import KFoldStrategy, SplitPlan
except Exception as e:  # noqa: BLE001
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que o runner de busca esteja disponível para os testes.
    """
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing search runner. Implement:\n"
            "- src/stageline/search/runner.py (search, SearchResult, CandidateResult)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def _eval_only(X_train, y_train, X_eval):
    return X_eval


def _mae(y, p):
    return float(np.mean(np.abs(np.asarray(y, dtype=float) - np.asarray(p, dtype=float))))


@pytest.fixture
def linear_data():
    X = np.arange(10, dtype=float)
    y = 3 * X + 1
    return X, y


def test_search_ranks_lowest_error_first(scale_offset_pipeline, linear_data):
    _require_imports()
    X, y = linear_data
    result = search(
        scale_offset_pipeline,
        X,
        y,
        {"scale.factor": [2, 3]},
        KFoldStrategy(n_splits=5),
        negate(_mae),
        fold_input=_eval_only,
    )

    assert result.best_params == {"scale.factor": 3}
    assert result.best_score == 0.0
    assert result.best_index == 1
    assert [c.rank for c in result.candidates] == [2, 1]
    assert [c.index for c in result.ranking] == [1, 0]
    assert all(len(c.fold_scores) == 5 for c in result.candidates)
    assert result.failures == []
    # o Pipeline original continua com factor=2
    assert scale_offset_pipeline.get_params()["scale.factor"] == 2


def test_refit_builds_independent_pipeline(scale_offset_pipeline, linear_data):
    _require_imports()
    X, y = linear_data
    result = search(
        scale_offset_pipeline, X, y, {"scale.factor": [2, 3]}, KFoldStrategy(n_splits=5), negate(_mae),
        fold_input=_eval_only,
    )
    np.testing.assert_allclose(result.refit_output, y)
    assert result.best_pipeline.get_params() == {"scale.factor": 3, "offset.amount": 1}
    assert result.best_pipeline is not scale_offset_pipeline

    no_refit = search(
        scale_offset_pipeline, X, y, {"scale.factor": [2, 3]}, KFoldStrategy(n_splits=5), negate(_mae),
        fold_input=_eval_only, refit=False,
    )
    assert no_refit.best_pipeline is None
    assert no_refit.refit_output is None


def test_search_is_deterministic_with_ties(linear_data):
    """
    `label` não afeta a saída: todos os candidatos empatam e o primeiro
    enumerado vence, sempre.
    """
    _require_imports()
    X, y = linear_data
    p = build(
        [
            FunctionStage("scale", lambda x, factor: x * factor, {"factor": 3}),
            FunctionStage("offset", lambda x, offset, label: x + offset, {"offset": 1, "label": "a"}),
        ]
    )
    runs = [
        search(p, X, y, {"offset.label": ["b", "a", "c"]}, KFoldStrategy(n_splits=2), negate(_mae), fold_input=_eval_only)
        for _ in range(2)
    ]
    for r in runs:
        assert r.best_index == 0
        assert r.best_params == {"offset.label": "b"}
        assert [c.index for c in r.ranking] == [0, 1, 2]
    assert runs[0].to_dict()["cv_results"] == runs[1].to_dict()["cv_results"]


def test_unaffected_stages_reuse_cache(scale_offset_pipeline, call_counter, linear_data):
    """
    Variando apenas `offset.amount`, `scale` executa uma vez por fold.
    """
    _require_imports()
    X, y = linear_data
    search(
        scale_offset_pipeline, X, y, {"offset.amount": [0, 1, 2]}, KFoldStrategy(n_splits=5), negate(_mae),
        fold_input=_eval_only, refit=False,
    )
    assert call_counter == {"scale": 5, "offset": 15}


def test_unknown_grid_path_fails_before_execution(scale_offset_pipeline, call_counter, linear_data):
    _require_imports()
    X, y = linear_data
    with pytest.raises(UnknownParameterError) as exc:
        search(scale_offset_pipeline, X, y, {"scale.nope": [1], "scale.factor": [2]}, KFoldStrategy(), negate(_mae))
    assert exc.value.paths == ["scale.nope"]
    assert call_counter == {}


def test_failed_candidates_are_excluded(linear_data):
    _require_imports()
    X, y = linear_data

    def _scale(x, factor):
        if factor == 0:
            raise ZeroDivisionError("factor must be non-zero")
        return x * factor

    p = build([FunctionStage("scale", _scale, {"factor": 1}), FunctionStage("offset", lambda x, offset: x + offset, {"offset": 1})])
    result = search(p, X, y, {"scale.factor": [0, 2, 3]}, KFoldStrategy(n_splits=2), negate(_mae), fold_input=_eval_only)

    failed = result.candidates[0]
    assert failed.score is None
    assert failed.rank is None
    assert failed.error["type"] == CANDIDATE_FAILED
    assert failed.error["details"]["fold"] == 0
    assert result.best_params == {"scale.factor": 3}
    assert [c.index for c in result.ranking] == [2, 1]
    assert len(result.failures) == 1
    assert any(ev["message"] == "candidate_failed" for ev in result.events)


def test_non_finite_scores_are_excluded_from_ranking(linear_data):
    """
    Um score agregado NaN (ex.: r2 em fold de validação unitário) conta como
    falha do candidato e não desorganiza o ranking dos demais.
    """
    _require_imports()
    X, _ = linear_data

    def _s(x, k):
        return x * k if k else np.full_like(x, np.nan)

    p = build([FunctionStage("s", _s, {"k": 1})])
    result = search(p, X, X, {"s.k": [2, 0, 1]}, KFoldStrategy(n_splits=2), negate(_mae), fold_input=_eval_only)

    nan_candidate = result.candidates[1]
    assert nan_candidate.score is None
    assert nan_candidate.rank is None
    assert nan_candidate.error["type"] == CANDIDATE_FAILED
    assert result.best_params == {"s.k": 1}
    assert result.best_score == 0.0
    assert [c.index for c in result.ranking] == [2, 0]
    assert [c.rank for c in result.candidates] == [2, None, 1]
    assert result.to_dict()["cv_results"][1]["fold_scores"] == [None, None]


def test_all_candidates_failing_raises(linear_data):
    _require_imports()
    X, y = linear_data

    def _broken(x, factor):
        raise RuntimeError("always")

    p = build([FunctionStage("scale", _broken, {"factor": 1})])
    with pytest.raises(SearchExhaustedError) as exc:
        search(p, X, y, {"scale.factor": [1, 2]}, KFoldStrategy(n_splits=2), negate(_mae), fold_input=_eval_only)
    assert len(exc.value.failures) == 2


def test_scorer_errors_propagate(scale_offset_pipeline, linear_data):
    _require_imports()
    X, y = linear_data

    def _bad_scorer(y_true, y_pred):
        raise ValueError("scorer exploded")

    with pytest.raises(ValueError, match="scorer exploded"):
        search(scale_offset_pipeline, X, y, {"scale.factor": [2]}, KFoldStrategy(n_splits=2), _bad_scorer, fold_input=_eval_only)


def test_parallel_matches_sequential(linear_data):
    _require_imports()
    X, y = linear_data

    def _make():
        return build(
            [
                FunctionStage("scale", lambda x, factor: x * factor, {"factor": 1}),
                FunctionStage("offset", lambda x, offset: x + offset, {"offset": 0}),
            ]
        )

    grid = {"scale.factor": [1, 2, 3, 4], "offset.offset": [0, 1, 2]}
    seq = search(_make(), X, y, grid, KFoldStrategy(n_splits=5), negate(_mae), fold_input=_eval_only, n_jobs=1)
    par = search(_make(), X, y, grid, KFoldStrategy(n_splits=5), negate(_mae), fold_input=_eval_only, n_jobs=4)

    assert seq.best_params == par.best_params == {"offset.offset": 1, "scale.factor": 3}
    assert [c.index for c in seq.ranking] == [c.index for c in par.ranking]
    assert [c.score for c in seq.candidates] == [c.score for c in par.candidates]


def test_median_aggregation_and_custom_plan(scale_offset_pipeline):
    _require_imports()
    X = np.array([1.0, 2.0, 3.0, 100.0])
    y = 3 * X + 1

    def plan_factory(n_samples, target=None):
        return SplitPlan([([0, 1, 2], [3]), ([1, 2, 3], [0]), ([0, 2, 3], [1])])

    result = search(
        scale_offset_pipeline, X, y, {"scale.factor": [2]}, plan_factory, negate(_mae),
        fold_input=_eval_only, aggregate="median", refit=False,
    )
    # erros absolutos por fold com factor=2: 100, 1, 2 → mediana 2
    assert result.candidates[0].fold_scores == [-100.0, -1.0, -2.0]
    assert result.best_score == -2.0
    assert result.aggregate == "median"

    with pytest.raises(ValueError):
        search(scale_offset_pipeline, X, y, {"scale.factor": [2]}, plan_factory, negate(_mae), aggregate="mode")


def test_search_defaults_from_config(scale_offset_pipeline, linear_data):
    """`search.refit=false` na configuração desabilita o refit."""
    _require_imports()
    X, y = linear_data
    result = search(
        scale_offset_pipeline, X, y, {"scale.factor": [3]}, KFoldStrategy(n_splits=2), "neg_mean_absolute_error",
        fold_input=_eval_only, config={"search": {"refit": False}},
    )
    assert result.best_pipeline is None
    assert result.to_dict()["best_params"] == {"scale.factor": 3}
