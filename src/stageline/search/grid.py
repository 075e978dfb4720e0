"""Search Grid: espaço de candidatos da busca de hiperparâmetros.

Um Search Grid mapeia Parameter Paths (`<stage>.<opção>`) para listas
ordenadas e não vazias de valores candidatos.

Invariantes:
- determinístico: a enumeração depende apenas do grid
- paths em ordem lexicográfica; o primeiro path varia mais devagar
- valores na ordem declarada
- sem acesso a dados e sem execução de Stages

Grids podem ser persistidos em YAML/JSON ("bank" de grids), no formato:

grid:
  scale.factor: [1, 2, 3]
  offset.offset: [0, 1]

(a chave raiz `grid` é opcional.)
"""

from __future__ import annotations

import itertools
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping

from stageline.core.config.loader import load_mapping_file
from stageline.core.exceptions import InvalidSearchGridError


class SearchGrid:
    """Grid cartesiano de Parameter Paths → valores candidatos."""

    def __init__(self, params: Mapping[str, Any]):
        if not isinstance(params, Mapping):
            raise InvalidSearchGridError(
                "search grid must be a mapping of parameter path -> list of values",
                details={"received": type(params).__name__},
            )
        if not params:
            raise InvalidSearchGridError("search grid must declare at least one parameter path")

        grid: Dict[str, List[Any]] = {}
        for path, values in params.items():
            if not isinstance(path, str) or not path.strip():
                raise InvalidSearchGridError(
                    "search grid keys must be non-empty strings",
                    details={"key": repr(path)},
                )
            if not isinstance(values, (list, tuple)) or len(values) == 0:
                raise InvalidSearchGridError(
                    f"search grid values for '{path}' must be a non-empty list",
                    details={"path": path},
                    hint="Wrap a single value in a list, e.g. [value].",
                )
            grid[path] = list(values)
        self._grid = grid

    @property
    def paths(self) -> List[str]:
        return sorted(self._grid)

    def values(self, path: str) -> List[Any]:
        return list(self._grid[path])

    def __len__(self) -> int:
        n = 1
        for values in self._grid.values():
            n *= len(values)
        return n

    def __repr__(self) -> str:
        return f"SearchGrid(paths={self.paths!r}, candidates={len(self)})"

    def candidates(self) -> Iterator[Dict[str, Any]]:
        """Enumera as combinações em ordem determinística."""
        paths = self.paths
        for combo in itertools.product(*(self._grid[p] for p in paths)):
            yield dict(zip(paths, combo))

    def validate_against(self, pipeline: Any) -> None:
        """Valida todos os paths contra o Pipeline (sem executar nada).

        Raises:
            UnknownParameterError: Com todos os paths que não resolvem.
        """
        pipeline.effective_config({p: self._grid[p][0] for p in self.paths})

    def to_dict(self) -> Dict[str, List[Any]]:
        return {p: list(self._grid[p]) for p in self.paths}


def load_grid(path: Path) -> SearchGrid:
    """Carrega um SearchGrid de um arquivo YAML/JSON.

    Raises:
        FileNotFoundError: Arquivo inexistente.
        InvalidSearchGridError: Conteúdo não é um grid válido.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"search grid file not found: {p}")
    data = load_mapping_file(p)
    if "grid" in data:
        data = data["grid"]
    return SearchGrid(data)


__all__ = ["SearchGrid", "load_grid"]
