"""Scorers da busca: `(y_true, y_pred) -> float`, maior é melhor.

Losses são convertidas com `negate`. Scorers nomeados usam
`sklearn.metrics` e seguem a convenção `neg_*` do scikit-learn.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List

import numpy as np
from sklearn.metrics import accuracy_score, f1_score, mean_absolute_error, mean_squared_error, r2_score

Scorer = Callable[[Any, Any], float]


def negate(loss: Callable[[Any, Any], float]) -> Scorer:
    """Converte uma loss (menor é melhor) em scorer (maior é melhor)."""

    def _scorer(y_true: Any, y_pred: Any) -> float:
        return -float(loss(y_true, y_pred))

    _scorer.__name__ = f"neg_{getattr(loss, '__name__', 'loss')}"
    return _scorer


def _rmse(y_true: Any, y_pred: Any) -> float:
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


_NAMED: Dict[str, Scorer] = {
    "accuracy": lambda y, p: float(accuracy_score(y, p)),
    "f1": lambda y, p: float(f1_score(y, p)),
    "r2": lambda y, p: float(r2_score(y, p)),
    "neg_mean_absolute_error": negate(mean_absolute_error),
    "neg_mean_squared_error": negate(mean_squared_error),
    "neg_root_mean_squared_error": negate(_rmse),
}


def available_scorers() -> List[str]:
    return sorted(_NAMED)


def resolve_scorer(scorer: Any) -> Scorer:
    """Resolve um scorer por nome ou aceita um callable.

    Raises:
        ValueError: Nome desconhecido.
        TypeError: Nem string nem callable.
    """
    if callable(scorer):
        return scorer
    if isinstance(scorer, str):
        key = scorer.strip().lower()
        if key not in _NAMED:
            raise ValueError(f"unknown scorer '{scorer}'; available: {', '.join(available_scorers())}")
        return _NAMED[key]
    raise TypeError("scorer must be a callable or a scorer name")


__all__ = ["Scorer", "negate", "resolve_scorer", "available_scorers"]
