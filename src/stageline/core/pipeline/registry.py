# src/stageline/core/pipeline/registry.py
"""
Registro estrutural de Stages e resolução de Parameter Paths.

O `StageRegistry` é a camada de proteção antecipada do pipeline:
    - valida que cada Stage satisfaz o protocolo (name/config/apply)
    - garante unicidade de nomes
    - preserva a ordem declarada
    - resolve Parameter Paths (`<stage>.<opção>`) contra as opções
      declaradas, sem reflexão dinâmica de atributos

Decisões arquiteturais:
    - A validação ocorre antes de qualquer execução
    - Todos os paths inválidos são reportados de uma só vez
    - O separador é o último `.` do path, permitindo nomes de Stage
      com pontos (ex.: "features.scale.factor" → stage "features.scale")

Invariantes:
    - Cada Stage registrado possui nome único
    - A lista de Stages reflete exatamente a ordem de registro

Limites explícitos:
    - Não executa Stages
    - Não aplica overrides (apenas os resolve)
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from stageline.core.exceptions import (
    DuplicateStageNameError,
    EmptyPipelineError,
    InvalidStageError,
    UnknownParameterError,
)

from .stage import Stage


def split_path(path: Any) -> Optional[Tuple[str, str]]:
    """Divide `"<stage>.<opção>"` em (stage, opção); None quando malformado."""
    if not isinstance(path, str):
        return None
    stage_name, sep, option = path.rpartition(".")
    if not sep or not stage_name or not option:
        return None
    return stage_name, option


def _validate_stage(stage: Any) -> None:
    name = getattr(stage, "name", None)
    if not isinstance(name, str) or not name.strip():
        raise InvalidStageError(
            "stage.name must be a non-empty string",
            details={"received": type(stage).__name__},
        )
    config = getattr(stage, "config", None)
    if not isinstance(config, Mapping):
        raise InvalidStageError(
            f"Stage '{name}': config must be a mapping",
            details={"stage": name, "config_type": type(config).__name__},
        )
    if not callable(getattr(stage, "apply", None)):
        raise InvalidStageError(
            f"Stage '{name}': apply(config, value) is required",
            details={"stage": name},
        )


@dataclass
class StageRegistry:
    """
    Registro canônico de Stages em ordem declarada.

    Uso típico:
        registry = StageRegistry.from_stages([scale, offset])
        registry.resolve({"scale.factor": 3})  # {"scale": {"factor": 3}}
    """

    _stages: Dict[str, Stage] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    @classmethod
    def from_stages(cls, stages: Iterable[Stage]) -> "StageRegistry":
        """Constrói o registry validando a sequência inteira.

        Raises:
            EmptyPipelineError: Se a sequência for vazia.
            InvalidStageError: Se algum item não satisfizer o protocolo.
            DuplicateStageNameError: Com todos os nomes repetidos.
        """
        stage_list = list(stages)
        if not stage_list:
            raise EmptyPipelineError()

        for s in stage_list:
            _validate_stage(s)

        counts = Counter(s.name for s in stage_list)
        duplicates = [name for name, n in counts.items() if n > 1]
        if duplicates:
            raise DuplicateStageNameError(duplicates)

        reg = cls()
        for s in stage_list:
            reg.add(s)
        return reg

    def add(self, stage: Stage) -> None:
        _validate_stage(stage)
        if stage.name in self._stages:
            raise DuplicateStageNameError([stage.name])
        self._stages[stage.name] = stage
        self._order.append(stage.name)

    def get(self, name: str) -> Stage:
        return self._stages[name]

    def list(self) -> List[Stage]:
        return [self._stages[n] for n in self._order]

    def names(self) -> List[str]:
        return list(self._order)

    def options(self, name: str) -> List[str]:
        return list(self._stages[name].config.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._stages

    def __len__(self) -> int:
        return len(self._order)

    def unresolved(self, paths: Iterable[Any]) -> List[str]:
        """Retorna (sem levantar) os paths que não resolvem."""
        bad: List[str] = []
        for path in paths:
            parsed = split_path(path)
            if parsed is None:
                bad.append(str(path))
                continue
            stage_name, option = parsed
            stage = self._stages.get(stage_name)
            if stage is None or option not in stage.config:
                bad.append(path)
        return bad

    def resolve(self, overrides: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
        """
        Resolve um mapa de Parameter Paths para {stage: {opção: valor}}.

        Raises:
            UnknownParameterError: Com *todos* os paths não resolvidos.
        """
        bad = self.unresolved(overrides.keys())
        if bad:
            raise UnknownParameterError(bad)

        resolved: Dict[str, Dict[str, Any]] = {}
        for path, value in overrides.items():
            stage_name, option = split_path(path)  # type: ignore[misc]
            resolved.setdefault(stage_name, {})[option] = value
        return resolved
