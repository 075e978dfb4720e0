# src/stageline/core/pipeline/stage.py
"""
Contrato canônico de Stage do StageLine.

Um Stage é uma unidade nomeada de computação com uma configuração
declarada (mapa opção → valor) e uma função `apply(config, value)`.

Stages heterogêneos (encoders, scalers, estimadores, funções puras)
compartilham esta única interface de capacidade; o engine nunca depende
de herança nem inspeciona o tipo concreto.

Princípios fundamentais:
    - O engine passa ao Stage a configuração *efetiva* (persistida +
      overrides da chamada); o Stage não lê a própria `config` em `apply`
    - A saída de `apply` deve ser função pura de (config, value) para que
      o cache seja correto
    - Conformidade por duck typing (@runtime_checkable)

Limites explícitos:
    - Não define retry nem tratamento de exceções
    - Não conhece cache, registry ou engine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Protocol, runtime_checkable

from .types import StageKind


@runtime_checkable
class Stage(Protocol):
    """
    Contrato mínimo de um Stage.

    Atributos obrigatórios:
        - name: identificador único do Stage no pipeline
        - kind: classificação semântica (`StageKind`)
        - config: opções declaradas e seus valores default; apenas opções
          declaradas aqui podem ser endereçadas por Parameter Paths

    Invariantes:
        - `apply` recebe a configuração efetiva completa como mapa
        - O retorno de `apply` é a entrada do próximo Stage
    """
    name: str
    kind: StageKind
    config: Mapping[str, Any]

    def apply(self, config: Mapping[str, Any], value: Any) -> Any:
        """Transforma `value` segundo `config` e retorna a saída."""
        ...


@dataclass
class FunctionStage:
    """Stage genérico que delega para uma função `fn(value, **config)`.

    Exemplo:
        FunctionStage("scale", lambda x, factor: x * factor, {"factor": 2})
    """

    name: str
    fn: Callable[..., Any]
    config: Dict[str, Any] = field(default_factory=dict)
    kind: StageKind = StageKind.TRANSFORM

    def apply(self, config: Mapping[str, Any], value: Any) -> Any:
        return self.fn(value, **dict(config))
