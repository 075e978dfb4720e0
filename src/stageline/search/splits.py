"""Split Plans e estratégias de particionamento para validação cruzada.

Um Split Plan é uma sequência ordenada de folds; cada fold particiona
índices de amostras em (train, validation).

Estratégias são fábricas chamáveis como `strategy(n_samples, target=None)`
e delegam o particionamento ao scikit-learn (`KFold`, `StratifiedKFold`,
`TimeSeriesSplit`). Os índices são materializados em tuplas de int para
que o plano seja imutável e serializável.

Invariantes:
- cada fold tem train e validation não vazios e disjuntos
- todos os índices estão em [0, n_samples)
- mesma estratégia + mesma entrada → mesmo plano (seed explícita)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence

import numpy as np
from sklearn.model_selection import KFold, StratifiedKFold, TimeSeriesSplit

from stageline.core.exceptions import InvalidSplitPlanError


@dataclass(frozen=True)
class Fold:
    train: tuple
    validation: tuple

    def __post_init__(self) -> None:
        if len(self.train) == 0 or len(self.validation) == 0:
            raise InvalidSplitPlanError("fold train and validation indices must be non-empty")
        overlap = set(self.train) & set(self.validation)
        if overlap:
            raise InvalidSplitPlanError(
                "fold train and validation indices must be disjoint",
                details={"overlap": sorted(overlap)[:20]},
            )

    def to_dict(self) -> Dict[str, List[int]]:
        return {"train": list(self.train), "validation": list(self.validation)}


class SplitPlan:
    """Sequência ordenada e imutável de folds."""

    def __init__(self, folds: Sequence[Any]):
        built: List[Fold] = []
        for f in folds:
            if isinstance(f, Fold):
                built.append(f)
            else:
                train, validation = f
                built.append(
                    Fold(
                        train=tuple(int(i) for i in train),
                        validation=tuple(int(i) for i in validation),
                    )
                )
        if not built:
            raise InvalidSplitPlanError("split plan must contain at least one fold")
        self._folds = tuple(built)

    @property
    def folds(self) -> tuple:
        return self._folds

    def __len__(self) -> int:
        return len(self._folds)

    def __iter__(self) -> Iterator[Fold]:
        return iter(self._folds)

    def __getitem__(self, i: int) -> Fold:
        return self._folds[i]

    def validate(self, n_samples: int) -> "SplitPlan":
        """Garante que todos os índices estão em [0, n_samples).

        Raises:
            InvalidSplitPlanError: Índice fora do intervalo.
        """
        for k, fold in enumerate(self._folds):
            for idx in fold.train + fold.validation:
                if idx < 0 or idx >= n_samples:
                    raise InvalidSplitPlanError(
                        f"fold {k} has index {idx} outside [0, {n_samples})",
                        details={"fold": k, "index": idx, "n_samples": n_samples},
                    )
        return self


def _to_plan(splits: Any) -> SplitPlan:
    return SplitPlan([(tr.tolist(), va.tolist()) for tr, va in splits])


def _require_seed(shuffle: bool, seed: Optional[int]) -> None:
    if shuffle and seed is None:
        raise ValueError("shuffled splits require an explicit seed")


@dataclass(frozen=True)
class KFoldStrategy:
    """K-fold contíguo (ou embaralhado com seed)."""

    n_splits: int = 5
    shuffle: bool = False
    seed: Optional[int] = 42

    def __post_init__(self) -> None:
        _require_seed(self.shuffle, self.seed)

    def __call__(self, n_samples: int, target: Any = None) -> SplitPlan:
        rs = self.seed if self.shuffle else None
        cv = KFold(n_splits=self.n_splits, shuffle=self.shuffle, random_state=rs)
        return _to_plan(cv.split(np.zeros((n_samples, 1))))


@dataclass(frozen=True)
class StratifiedKFoldStrategy:
    """K-fold estratificado pelo target (classificação)."""

    n_splits: int = 5
    shuffle: bool = True
    seed: Optional[int] = 42

    def __post_init__(self) -> None:
        _require_seed(self.shuffle, self.seed)

    def __call__(self, n_samples: int, target: Any = None) -> SplitPlan:
        if target is None:
            raise InvalidSplitPlanError(
                "stratified split requires the target",
                hint="Pass target_train to search() or use kind=kfold.",
            )
        rs = self.seed if self.shuffle else None
        cv = StratifiedKFold(n_splits=self.n_splits, shuffle=self.shuffle, random_state=rs)
        return _to_plan(cv.split(np.zeros((n_samples, 1)), np.asarray(target)))


@dataclass(frozen=True)
class TimeSeriesStrategy:
    """Janela expansiva: treino sempre antecede a validação."""

    n_splits: int = 5
    gap: int = 0
    max_train_size: Optional[int] = None

    def __call__(self, n_samples: int, target: Any = None) -> SplitPlan:
        cv = TimeSeriesSplit(n_splits=self.n_splits, gap=self.gap, max_train_size=self.max_train_size)
        return _to_plan(cv.split(np.zeros((n_samples, 1))))


def split_strategy_from_config(cfg: Dict[str, Any]) -> Any:
    """Constrói a estratégia a partir da seção `search.split`.

    Raises:
        ValueError: `kind` não suportado.
    """
    kind = str(cfg.get("kind", "kfold")).lower()
    n_splits = int(cfg.get("n_splits", 5))
    shuffle = bool(cfg.get("shuffle", False))
    seed = cfg.get("seed", 42)

    if kind == "kfold":
        return KFoldStrategy(n_splits=n_splits, shuffle=shuffle, seed=seed)
    if kind == "stratified_kfold":
        return StratifiedKFoldStrategy(n_splits=n_splits, shuffle=shuffle, seed=seed)
    if kind == "time_series":
        return TimeSeriesStrategy(
            n_splits=n_splits,
            gap=int(cfg.get("gap", 0)),
            max_train_size=cfg.get("max_train_size"),
        )
    raise ValueError(f"Invalid config: search.split.kind must be one of: kfold, stratified_kfold, time_series (got {kind})")


__all__ = [
    "Fold",
    "SplitPlan",
    "KFoldStrategy",
    "StratifiedKFoldStrategy",
    "TimeSeriesStrategy",
    "split_strategy_from_config",
]
