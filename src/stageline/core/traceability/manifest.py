# src/stageline/core/traceability/manifest.py
"""
Manifest v1: rastreabilidade de runs do StageLine.

O Manifest consolida, de forma serializável e reconstruível:
    - metadados da run (run_id, started_at, versão)
    - hash da configuração do engine e a configuração efetiva por Stage
    - estado final de cada Stage (StageTrace)
    - Event Log ordenado

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - A ordem do Event Log reflete a ordem real de execução
    - Persistência em JSON determinístico (round-trip via to_dict/from_dict)

Limites explícitos:
    - Não executa pipeline
    - Não persiste automaticamente (ver save_manifest)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from stageline.core.errors import json_safe
from stageline.core.pipeline.types import RunResult, StageTrace


MANIFEST_VERSION = "v1"


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Timestamps naive são interpretados como UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


@dataclass
class RunManifest:
    """
    Registro serializável de uma run.

    Campos principais:
        - run: run_id, started_at, stageline_version, manifest_version
        - inputs: config_hash e configuração efetiva por Stage
        - stages: StageTrace serializado por nome, em ordem de execução
        - events: Event Log ordenado
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    stages: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "stages": {k: dict(v) for k, v in self.stages.items()},
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunManifest":
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            stages={k: dict(v) for k, v in (data.get("stages", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )


def create_manifest(
    *,
    run_id: str,
    started_at: datetime,
    stageline_version: str,
    config_hash: str,
    effective_config: Optional[Dict[str, Dict[str, Any]]] = None,
) -> RunManifest:
    """Cria o Manifest inicial de uma run (sem eventos e sem Stages)."""
    return RunManifest(
        run={
            "run_id": run_id,
            "started_at": _iso(started_at),
            "stageline_version": stageline_version,
            "manifest_version": MANIFEST_VERSION,
        },
        inputs={
            "config_hash": config_hash,
            "effective_config": json_safe(effective_config or {}),
        },
    )


def add_event(
    manifest: RunManifest,
    *,
    event_type: str,
    ts: datetime,
    stage: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """Adiciona um evento explícito ao Event Log (ordem de chamada = ordem canônica)."""
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if stage is not None:
        ev["stage"] = stage
    if payload is not None:
        ev["payload"] = json_safe(payload)
    manifest.events.append(ev)


def record_stage(manifest: RunManifest, trace: StageTrace) -> None:
    """Registra (ou substitui) o estado final de um Stage."""
    manifest.stages[trace.stage] = trace.to_dict()


def manifest_from_run(result: RunResult, *, started_at: Optional[datetime] = None) -> RunManifest:
    """Constrói o Manifest completo a partir de um RunResult."""
    from stageline import __version__

    m = create_manifest(
        run_id=result.run_id,
        started_at=started_at or datetime.now(timezone.utc),
        stageline_version=__version__,
        config_hash=result.config_hash,
        effective_config=result.effective_config,
    )
    for trace in result.traces:
        record_stage(m, trace)
    for ev in result.events:
        extra = {k: v for k, v in ev.items() if k not in {"run_id", "stage", "message", "timestamp"}}
        m.events.append(
            {
                "event_type": ev.get("message"),
                "timestamp": ev.get("timestamp"),
                **({"stage": ev["stage"]} if ev.get("stage") is not None else {}),
                **({"payload": json_safe(extra)} if extra else {}),
            }
        )
    return m


def save_manifest(manifest: RunManifest, path: Union[str, Path]) -> None:
    """Persiste o Manifest em JSON determinístico (chaves ordenadas, indentado)."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(
        json.dumps(manifest.to_dict(), ensure_ascii=False, sort_keys=True, indent=2),
        encoding="utf-8",
    )


def load_manifest(path: Union[str, Path]) -> RunManifest:
    """Carrega um Manifest salvo por `save_manifest`."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(str(p))
    data = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Invalid manifest file: root must be an object")
    return RunManifest.from_dict(data)


__all__ = [
    "MANIFEST_VERSION",
    "RunManifest",
    "add_event",
    "create_manifest",
    "load_manifest",
    "manifest_from_run",
    "record_stage",
    "save_manifest",
]
