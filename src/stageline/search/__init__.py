"""Busca de hiperparâmetros: grids, split plans, scorers e runner."""

from .grid import SearchGrid, load_grid
from .runner import CandidateResult, SearchResult, default_fold_input, search
from .scoring import available_scorers, negate, resolve_scorer
from .splits import (
    Fold,
    KFoldStrategy,
    SplitPlan,
    StratifiedKFoldStrategy,
    TimeSeriesStrategy,
    split_strategy_from_config,
)

__all__ = [
    "CandidateResult",
    "Fold",
    "KFoldStrategy",
    "SearchGrid",
    "SearchResult",
    "SplitPlan",
    "StratifiedKFoldStrategy",
    "TimeSeriesStrategy",
    "available_scorers",
    "default_fold_input",
    "load_grid",
    "negate",
    "resolve_scorer",
    "search",
    "split_strategy_from_config",
]
