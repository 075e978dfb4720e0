# src/stageline/core/pipeline/types.py
"""
Tipos canônicos do pipeline do StageLine.

Componentes principais:
    - StageKind   → classificação semântica de Stages
    - StageStatus → estado final de um Stage dentro de uma run
    - StageTrace  → registro imutável do que aconteceu com um Stage
    - RunResult   → resultado agregado de `Pipeline.execute`

Princípios fundamentais:
    - Tipos são estáveis e serializáveis (exceto `RunResult.output`,
      que é o valor produzido pelo último Stage)
    - Nenhuma lógica de execução vive neste módulo

Limites explícitos:
    - Não executa Stages
    - Não decide políticas de cache
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class StageKind(str, Enum):
    """
    Tipos semânticos de Stages.

    Tipos definidos:
        - TRANSFORM: transformação genérica de valores
        - ENCODER: codificação de features (ex.: one-hot)
        - SCALER: normalização / padronização
        - ESTIMATOR: modelo que produz predições

    O engine não altera comportamento com base no `kind`; ele é usado
    por Stages concretos (ex.: SklearnStage) e na rastreabilidade.
    """
    TRANSFORM = "transform"
    ENCODER = "encoder"
    SCALER = "scaler"
    ESTIMATOR = "estimator"


class StageStatus(str, Enum):
    """
    Estado final de um Stage em uma run.

        - EXECUTED: `apply` foi chamado
        - CACHED: saída reaproveitada do cache (apply não foi chamado)
        - FAILED: `apply` levantou exceção; a run foi interrompida
    """
    EXECUTED = "executed"
    CACHED = "cached"
    FAILED = "failed"


@dataclass(frozen=True)
class StageTrace:
    """
    Registro imutável da passagem de um Stage por uma run.

    Campos:
        - stage: nome do Stage
        - position: posição (0-based) na ordem declarada
        - status: StageStatus final
        - config_fingerprint: fingerprint de (nome, configuração efetiva)
        - input_fingerprint: fingerprint do valor de entrada
        (ambos vazios quando o cache não foi consultado)
        - duration_ms: duração de apply/lookup em milissegundos
        - error: ErrorPayload serializado quando status == FAILED
    """
    stage: str
    position: int
    status: StageStatus
    config_fingerprint: str
    input_fingerprint: str
    duration_ms: int = 0
    error: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage,
            "position": self.position,
            "status": self.status.value,
            "config_fingerprint": self.config_fingerprint,
            "input_fingerprint": self.input_fingerprint,
            "duration_ms": self.duration_ms,
            "error": self.error,
        }


@dataclass(frozen=True)
class RunResult:
    """Resultado agregado de uma execução (`Pipeline.execute`)."""

    run_id: str
    output: Any
    traces: List[StageTrace] = field(default_factory=list)
    events: List[Dict[str, Any]] = field(default_factory=list)
    effective_config: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    config_hash: str = ""

    @property
    def cache_hits(self) -> int:
        return sum(1 for t in self.traces if t.status == StageStatus.CACHED)

    @property
    def executed(self) -> List[str]:
        return [t.stage for t in self.traces if t.status == StageStatus.EXECUTED]
