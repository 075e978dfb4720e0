"""Stages concretos do StageLine (dados de fold, scikit-learn, catálogo)."""

from .catalog import StageCatalog, StageSpec, build_pipeline_from_config
from .data import FoldData, n_samples, take
from .sklearn import SklearnStage

__all__ = [
    "FoldData",
    "SklearnStage",
    "StageCatalog",
    "StageSpec",
    "build_pipeline_from_config",
    "n_samples",
    "take",
]
