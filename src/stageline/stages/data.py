"""Valores de dados trafegados entre Stages e utilitários de indexação.

`FoldData` é a entrada padrão do pipeline durante a busca: features e target
de treino mais as features a avaliar. Stages de sklearn ajustam em
(X_train, y_train) e aplicam em X_eval.

`take` aplica um conjunto de índices a qualquer valor indexável:
- numpy.ndarray → fancy indexing
- pandas DataFrame/Series → .iloc
- list/tuple/sequências → lista com os elementos selecionados
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class FoldData:
    """Dados de um fold (ou do refit): treino + features de avaliação."""

    X_train: Any
    y_train: Any
    X_eval: Any


def n_samples(data: Any) -> int:
    """Número de amostras (primeira dimensão) de um valor indexável."""
    if isinstance(data, (pd.DataFrame, pd.Series)):
        return int(data.shape[0])
    if isinstance(data, np.ndarray):
        return int(data.shape[0])
    return len(data)


def take(data: Any, indices: Sequence[int]) -> Any:
    """Seleciona as amostras `indices` preservando o tipo do contêiner.

    Raises:
        TypeError: Se `data` não for indexável por posição.
    """
    idx = np.asarray(list(indices), dtype=int)
    if isinstance(data, (pd.DataFrame, pd.Series)):
        return data.iloc[idx]
    if isinstance(data, np.ndarray):
        return data[idx]
    if isinstance(data, tuple):
        return tuple(data[int(i)] for i in idx)
    if hasattr(data, "__getitem__") and hasattr(data, "__len__"):
        return [data[int(i)] for i in idx]
    raise TypeError(f"value of type {type(data).__name__} is not indexable by position")


__all__ = ["FoldData", "n_samples", "take"]
