"""
StageLine: pipeline sequencial determinístico de transformações com cache
por Stage, overrides escopados por chamada e busca de hiperparâmetros com
validação cruzada.
"""

__version__ = "0.1.0"

from stageline.core.cache import DiskCache, MemoryCache, build_cache
from stageline.core.engine import Pipeline, build
from stageline.core.exceptions import (
    DuplicateStageNameError,
    EmptyPipelineError,
    InvalidSearchGridError,
    InvalidSplitPlanError,
    InvalidStageError,
    SearchExhaustedError,
    StageExecutionError,
    StagelineException,
    UnknownParameterError,
)
from stageline.core.pipeline import FunctionStage, Stage, StageKind
from stageline.search import (
    KFoldStrategy,
    SearchGrid,
    SearchResult,
    SplitPlan,
    StratifiedKFoldStrategy,
    TimeSeriesStrategy,
    negate,
    search,
)

__all__ = [
    "__version__",
    "DiskCache",
    "DuplicateStageNameError",
    "EmptyPipelineError",
    "FunctionStage",
    "InvalidSearchGridError",
    "InvalidSplitPlanError",
    "InvalidStageError",
    "KFoldStrategy",
    "MemoryCache",
    "Pipeline",
    "SearchExhaustedError",
    "SearchGrid",
    "SearchResult",
    "SplitPlan",
    "Stage",
    "StageExecutionError",
    "StageKind",
    "StagelineException",
    "StratifiedKFoldStrategy",
    "TimeSeriesStrategy",
    "UnknownParameterError",
    "build",
    "build_cache",
    "negate",
    "search",
]
