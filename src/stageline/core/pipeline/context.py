# src/stageline/core/pipeline/context.py
"""
Contexto de uma run do pipeline.

O `RunContext` é criado a cada `Pipeline.execute` e descartado ao final.
Ele concentra:
    - identidade da run (run_id, created_at)
    - a configuração efetiva por Stage adquirida para esta chamada
      (persistida + overrides; nunca escrita de volta no Pipeline)
    - o log estruturado de eventos
    - warnings não fatais por Stage

Invariantes:
    - Eventos sempre incluem `run_id`, `stage`, `level` e `timestamp` UTC
    - Overrides de uma chamada vivem apenas no contexto dessa chamada

Limites explícitos:
    - Não executa Stages
    - Não persiste eventos (ver core.traceability)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass
class RunContext:
    """Estado explícito de uma única run."""

    run_id: str
    created_at: datetime
    effective_config: Dict[str, Dict[str, Any]]
    meta: Dict[str, Any] = field(default_factory=dict)

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    def config_for(self, stage: str) -> Dict[str, Any]:
        return dict(self.effective_config.get(stage, {}))

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, stage: Optional[str], level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "stage": stage,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, stage: str, message: str) -> None:
        if stage not in self.warnings:
            self.warnings[stage] = []
        self.warnings[stage].append(message)
