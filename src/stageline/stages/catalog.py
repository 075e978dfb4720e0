"""
StageCatalog v1: catálogo determinístico de Stages scikit-learn.

Stages suportados, seus parâmetros declarados (e portanto endereçáveis por
Parameter Paths) e defaults são centralizados aqui, sem discovery
automático e sem inferência a partir de dados.

Este módulo fornece:
- StageSpec: especificação de um Stage suportado
- StageCatalog: ponto único de verdade para Stages de catálogo (v1)
- build_pipeline_from_config: Pipeline declarado em configuração

Config esperada (exemplo):

pipeline:
  stages:
    - name: scale
      stage: standard_scaler
    - name: model
      stage: logistic_regression
      params:
        C: 0.5
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Type

from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression, Ridge
from sklearn.neighbors import KNeighborsClassifier
from sklearn.preprocessing import MinMaxScaler, OneHotEncoder, StandardScaler

from stageline.core.cache.store import StageCache
from stageline.core.engine.engine import Pipeline, build
from stageline.core.pipeline.types import StageKind

from .sklearn import SklearnStage


@dataclass(frozen=True)
class StageSpec:
    """Especificação canônica de um Stage do catálogo."""

    stage_id: str
    estimator_cls: Type[Any]
    kind: StageKind
    default_params: Dict[str, Any] = field(default_factory=dict)
    version: str = "v1"

    def build(self, name: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> SklearnStage:
        """Instancia o SklearnStage com default_params + overrides.

        Overrides podem declarar novas opções, desde que o estimador as aceite.

        Raises:
            ValueError: Se algum override não for parâmetro do estimador.
        """
        params = dict(self.default_params)
        if overrides:
            accepted = self.estimator_cls().get_params(deep=False)
            unknown = sorted(k for k in overrides if k not in accepted)
            if unknown:
                raise ValueError(
                    f"param(s) {', '.join(unknown)} not found in estimator params for stage_id '{self.stage_id}'"
                )
            params.update(overrides)
        return SklearnStage(
            name=name or self.stage_id,
            estimator_cls=self.estimator_cls,
            config=params,
            kind=self.kind,
        )


class StageCatalog:
    """Catálogo determinístico de StageSpec.

    Extensibilidade é explícita: novos Stages são registrados via `register()`.
    """

    def __init__(self, specs: Optional[Iterable[StageSpec]] = None):
        self._specs: Dict[str, StageSpec] = {}
        if specs:
            for s in specs:
                self.register(s)

    @classmethod
    def v1(cls) -> "StageCatalog":
        """Factory do catálogo v1 (scalers, encoder, LR, Ridge, RF, KNN)."""
        return cls(specs=_default_specs_v1())

    def register(self, spec: StageSpec) -> None:
        if not isinstance(spec, StageSpec):
            raise TypeError("spec must be a StageSpec")
        if not isinstance(spec.stage_id, str) or not spec.stage_id.strip():
            raise ValueError("stage_id must be a non-empty string")
        if spec.stage_id in self._specs:
            raise ValueError(f"stage_id already registered: {spec.stage_id}")
        self._specs[spec.stage_id] = spec

    def list_ids(self) -> List[str]:
        return sorted(self._specs.keys())

    def get(self, stage_id: str) -> StageSpec:
        if stage_id not in self._specs:
            raise KeyError(f"unknown stage_id: {stage_id}")
        return self._specs[stage_id]

    def build(
        self,
        stage_id: str,
        name: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> SklearnStage:
        return self.get(stage_id).build(name=name, overrides=overrides)


def _default_specs_v1() -> List[StageSpec]:
    return [
        StageSpec(
            stage_id="standard_scaler",
            estimator_cls=StandardScaler,
            kind=StageKind.SCALER,
            default_params={"with_mean": True, "with_std": True},
        ),
        StageSpec(
            stage_id="minmax_scaler",
            estimator_cls=MinMaxScaler,
            kind=StageKind.SCALER,
            default_params={"feature_range": (0, 1), "clip": False},
        ),
        StageSpec(
            stage_id="one_hot_encoder",
            estimator_cls=OneHotEncoder,
            kind=StageKind.ENCODER,
            default_params={"handle_unknown": "ignore", "sparse_output": False},
        ),
        StageSpec(
            stage_id="logistic_regression",
            estimator_cls=LogisticRegression,
            kind=StageKind.ESTIMATOR,
            default_params={"C": 1.0, "max_iter": 1000, "solver": "lbfgs", "class_weight": None},
        ),
        StageSpec(
            stage_id="ridge",
            estimator_cls=Ridge,
            kind=StageKind.ESTIMATOR,
            default_params={"alpha": 1.0, "fit_intercept": True},
        ),
        StageSpec(
            stage_id="random_forest",
            estimator_cls=RandomForestClassifier,
            kind=StageKind.ESTIMATOR,
            default_params={
                "n_estimators": 200,
                "max_depth": None,
                "min_samples_leaf": 1,
                "random_state": 42,
                "n_jobs": 1,
            },
        ),
        StageSpec(
            stage_id="knn",
            estimator_cls=KNeighborsClassifier,
            kind=StageKind.ESTIMATOR,
            default_params={"n_neighbors": 5, "weights": "uniform", "p": 2},
        ),
    ]


def build_pipeline_from_config(
    config: Dict[str, Any],
    *,
    catalog: Optional[StageCatalog] = None,
    cache: Optional[StageCache] = None,
) -> Pipeline:
    """Constrói um Pipeline a partir de `pipeline.stages` da configuração.

    Raises:
        ValueError: Seção `pipeline.stages` ausente ou item malformado.
        KeyError: stage_id desconhecido no catálogo.
    """
    pipeline_cfg = config.get("pipeline") if isinstance(config, dict) else None
    if not isinstance(pipeline_cfg, dict):
        raise ValueError("Invalid config: pipeline must be a mapping")
    items = pipeline_cfg.get("stages")
    if not isinstance(items, list):
        raise ValueError("Invalid config: pipeline.stages must be a list")

    cat = catalog or StageCatalog.v1()
    stages: List[SklearnStage] = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValueError(f"Invalid config: pipeline.stages[{i}] must be a mapping")
        stage_id = item.get("stage")
        if not isinstance(stage_id, str) or not stage_id.strip():
            raise ValueError(f"Invalid config: pipeline.stages[{i}].stage is required")
        params = item.get("params") or {}
        if not isinstance(params, dict):
            raise ValueError(f"Invalid config: pipeline.stages[{i}].params must be a mapping")
        stages.append(cat.build(stage_id.strip(), name=item.get("name"), overrides=params))

    engine_cfg = {k: v for k, v in config.items() if k != "pipeline"}
    return build(stages, cache=cache, config=engine_cfg)


__all__ = ["StageSpec", "StageCatalog", "build_pipeline_from_config"]
