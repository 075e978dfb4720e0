"""
Busca de hiperparâmetros com validação cruzada sobre um Pipeline.

Fluxo de `search(...)`:
    1. Valida *todos* os paths do grid contra o Pipeline antes de executar
       qualquer Stage (UnknownParameterError)
    2. Enumera os candidatos em ordem determinística (SearchGrid)
    3. Constrói o Split Plan uma única vez:
       `split_plan_factory(n_samples, target_train)`
    4. Para cada candidato × fold:
           X_tr, y_tr, X_va, y_va = take(...)
           saída = pipeline.run(fold_input(X_tr, y_tr, X_va), overrides=candidato)
           score = scorer(y_va, saída)
    5. Agrega os scores por candidato (`mean` ou `median`)
    6. Ranqueia (maior é melhor; empate → menor índice de enumeração)
    7. Refit opcional: Pipeline independente com os melhores parâmetros
       persistidos, executado sobre todo o conjunto de treino

Decisões arquiteturais:
    - Overrides de candidato são por chamada: o Pipeline original nunca
      é reconfigurado pela busca
    - Stages que não dependem dos parâmetros variados reaproveitam o cache
      entre candidatos (mesma config + mesma entrada de fold)
    - Um candidato falha se qualquer fold levantar StageExecutionError; ele
      recebe score=None, um ErrorPayload e fica fora do ranking
    - Score agregado NaN ou infinito também é falha de candidato
    - Erros do scorer não são falhas de candidato: propagam
    - Com `n_jobs != 1` os candidatos rodam em threads (joblib); os
      resultados são reunidos na ordem de enumeração

Limites explícitos:
    - Não implementa busca aleatória ou bayesiana
    - Não faz early stopping
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import numpy as np
from joblib import Parallel, delayed

from stageline.core.config.loader import resolve_config
from stageline.core.errors import candidate_failed, candidate_score_not_finite, json_safe
from stageline.core.exceptions import SearchExhaustedError, StageExecutionError
from stageline.core.pipeline.context import RunContext
from stageline.stages.data import FoldData, n_samples, take

from .grid import SearchGrid
from .scoring import resolve_scorer
from .splits import SplitPlan

FoldInput = Callable[[Any, Any, Any], Any]

_AGGREGATES = {"mean": np.mean, "median": np.median}


def default_fold_input(X_train: Any, y_train: Any, X_eval: Any) -> FoldData:
    return FoldData(X_train=X_train, y_train=y_train, X_eval=X_eval)


@dataclass
class CandidateResult:
    """Resultado de um candidato do grid."""

    index: int
    params: Dict[str, Any]
    fold_scores: List[float] = field(default_factory=list)
    score: Optional[float] = None
    rank: Optional[int] = None
    error: Optional[Dict[str, Any]] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "params": json_safe(self.params),
            "fold_scores": [float(s) if np.isfinite(s) else None for s in self.fold_scores],
            "mean_test_score": self.score,
            "std_test_score": float(np.std(self.fold_scores)) if self.fold_scores and not self.failed else None,
            "rank_test_score": self.rank,
            "error": self.error,
        }


@dataclass
class SearchResult:
    """Resultado agregado de `search(...)`."""

    candidates: List[CandidateResult]
    n_folds: int
    aggregate: str
    best_pipeline: Any = None
    refit_output: Any = None
    events: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def ranking(self) -> List[CandidateResult]:
        ok = [c for c in self.candidates if not c.failed]
        return sorted(ok, key=lambda c: c.rank)  # type: ignore[arg-type,return-value]

    @property
    def best(self) -> CandidateResult:
        return self.ranking[0]

    @property
    def best_params(self) -> Dict[str, Any]:
        return dict(self.best.params)

    @property
    def best_score(self) -> float:
        return float(self.best.score)  # type: ignore[arg-type]

    @property
    def best_index(self) -> int:
        return self.best.index

    @property
    def failures(self) -> List[Dict[str, Any]]:
        return [c.error for c in self.candidates if c.error is not None]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "best_params": json_safe(self.best_params),
            "best_score": self.best_score,
            "best_index": self.best_index,
            "n_candidates": len(self.candidates),
            "n_folds": self.n_folds,
            "aggregate": self.aggregate,
            "cv_results": [c.to_dict() for c in self.candidates],
            "failures": list(self.failures),
        }


def _evaluate_candidate(
    pipeline: Any,
    index: int,
    params: Dict[str, Any],
    folds: List[Dict[str, Any]],
    scorer: Callable[[Any, Any], float],
    fold_input: FoldInput,
    aggregate: str,
) -> CandidateResult:
    result = CandidateResult(index=index, params=dict(params))
    for k, fold in enumerate(folds):
        value = fold_input(fold["X_train"], fold["y_train"], fold["X_eval"])
        try:
            output = pipeline.run(value, overrides=params)
        except StageExecutionError as e:
            result.fold_scores = []
            result.error = candidate_failed(index=index, params=params, fold=k, exc=e).to_dict()
            return result
        result.fold_scores.append(float(scorer(fold["y_eval"], output)))
    score = float(_AGGREGATES[aggregate](result.fold_scores))
    if not np.isfinite(score):
        result.error = candidate_score_not_finite(
            index=index, params=params, fold_scores=result.fold_scores, aggregate=aggregate
        ).to_dict()
        return result
    result.score = score
    return result


def search(
    pipeline: Any,
    input_train: Any,
    target_train: Any,
    grid: Union[SearchGrid, Mapping[str, Any]],
    split_plan_factory: Callable[..., SplitPlan],
    scorer: Union[str, Callable[[Any, Any], float]],
    *,
    refit: Optional[bool] = None,
    aggregate: Optional[str] = None,
    n_jobs: Optional[int] = None,
    fold_input: Optional[FoldInput] = None,
    config: Optional[Dict[str, Any]] = None,
) -> SearchResult:
    """
    Busca exaustiva no grid com validação cruzada.

    Args:
        pipeline: Pipeline a avaliar (não é mutado).
        input_train: Features (numpy, pandas ou sequência indexável).
        target_train: Target alinhado a `input_train`.
        grid: SearchGrid ou mapa path → lista de valores.
        split_plan_factory: `factory(n_samples, target) -> SplitPlan`.
        scorer: Callable `(y_true, y_pred) -> float` ou nome registrado.
        refit: Default `search.refit` da configuração.
        aggregate: `mean` | `median`; default `search.aggregate`.
        n_jobs: Paralelismo por candidato; default `search.n_jobs`.
        fold_input: Monta a entrada do pipeline por fold; default FoldData.
        config: Configuração (deep-merge sobre DEFAULT_CONFIG); default a
            configuração do próprio Pipeline.

    Raises:
        UnknownParameterError: Paths do grid inválidos (nada é executado).
        InvalidSearchGridError: Grid malformado.
        InvalidSplitPlanError: Plano inválido para `n_samples`.
        SearchExhaustedError: Todos os candidatos falharam.
    """
    cfg = resolve_config(config) if config is not None else getattr(pipeline, "config", resolve_config())
    search_cfg = cfg.get("search", {}) or {}

    refit = bool(search_cfg.get("refit", True)) if refit is None else bool(refit)
    aggregate = str(aggregate or search_cfg.get("aggregate", "mean")).lower()
    if aggregate not in _AGGREGATES:
        raise ValueError(f"Invalid config: search.aggregate must be one of: mean, median (got {aggregate})")
    n_jobs = int(search_cfg.get("n_jobs", 1)) if n_jobs is None else int(n_jobs)
    make_input = fold_input or default_fold_input
    score_fn = resolve_scorer(scorer)

    sg = grid if isinstance(grid, SearchGrid) else SearchGrid(grid)
    sg.validate_against(pipeline)
    candidates = list(sg.candidates())

    n = n_samples(input_train)
    plan = split_plan_factory(n, target_train)
    if not isinstance(plan, SplitPlan):
        plan = SplitPlan(plan)
    plan.validate(n)

    folds = [
        {
            "X_train": take(input_train, f.train),
            "y_train": take(target_train, f.train),
            "X_eval": take(input_train, f.validation),
            "y_eval": take(target_train, f.validation),
        }
        for f in plan
    ]

    ctx = RunContext(
        run_id=uuid.uuid4().hex,
        created_at=datetime.now(timezone.utc),
        effective_config={},
        meta={"kind": "search"},
    )
    ctx.log(
        stage=None,
        level="info",
        message="search_started",
        n_candidates=len(candidates),
        n_folds=len(plan),
        paths=sg.paths,
    )

    if n_jobs == 1:
        results = [
            _evaluate_candidate(pipeline, i, params, folds, score_fn, make_input, aggregate)
            for i, params in enumerate(candidates)
        ]
    else:
        results = Parallel(n_jobs=n_jobs, prefer="threads")(
            delayed(_evaluate_candidate)(pipeline, i, params, folds, score_fn, make_input, aggregate)
            for i, params in enumerate(candidates)
        )
        results = sorted(results, key=lambda r: r.index)

    for r in results:
        if r.failed:
            ctx.log(stage=None, level="warning", message="candidate_failed", candidate=r.index)

    ok = sorted((r for r in results if not r.failed), key=lambda r: (-r.score, r.index))
    if not ok:
        raise SearchExhaustedError([r.error for r in results if r.error is not None])
    for rank, r in enumerate(ok, start=1):
        r.rank = rank

    result = SearchResult(candidates=list(results), n_folds=len(plan), aggregate=aggregate)

    if refit:
        best_pipeline = pipeline.with_params(result.best_params)
        result.best_pipeline = best_pipeline
        result.refit_output = best_pipeline.run(make_input(input_train, target_train, input_train))

    ctx.log(
        stage=None,
        level="info",
        message="search_finished",
        best_index=result.best_index,
        best_score=result.best_score,
        n_failed=len(result.failures),
        refit=refit,
    )
    result.events = list(ctx.events)
    return result


__all__ = ["CandidateResult", "SearchResult", "default_fold_input", "search"]
