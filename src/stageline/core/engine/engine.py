# src/stageline/core/engine/engine.py
"""
Engine de execução do pipeline sequencial do StageLine.

Ordem de uma run (`Pipeline.execute` / `Pipeline.run`):
    1. Valida *todos* os Parameter Paths dos overrides (UnknownParameterError
       lista todos os inválidos; nenhum Stage executa)
    2. Adquire a configuração efetiva por Stage (persistida + overrides)
       apenas para esta chamada; a configuração persistida não é mutada
    3. Executa os Stages estritamente na ordem declarada; a saída do Stage
       `i` é a entrada do Stage `i+1`
    4. Antes de cada Stage calcula o fingerprint de (nome, config efetiva,
       entrada); com cache habilitado e hit exato, reutiliza a saída.
       Hits não se propagam: cada Stage consulta sua própria chave
    5. Retorna a saída do último Stage
    6. Falha em `apply` → StageExecutionError(stage, posição, causa);
       a run é interrompida, sem retry

Decisões arquiteturais:
    - O cache é um colaborador explícito (injetado ou construído da config)
    - Reconfiguração persistente (`set_params`) nunca reaproveita entradas
      de outra configuração: o fingerprint da config faz parte da chave
    - Entradas ou configs que não podem ser fingerprintadas desabilitam o
      cache apenas para aquele Stage, com warning registrado no RunContext
    - Com cache desabilitado nenhum fingerprint é calculado (traces ficam
      com fingerprints vazios)

Limites explícitos:
    - Não faz retry, timeout ou cancelamento
    - Não paraleliza Stages (a ordem é estritamente sequencial)
"""

from __future__ import annotations

import copy
import pickle
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from stageline.core.cache.store import CacheKey, StageCache, build_cache
from stageline.core.config.hashing import compute_config_hash, fingerprint, stage_fingerprint
from stageline.core.config.loader import resolve_config
from stageline.core.errors import exception_to_error
from stageline.core.exceptions import StageExecutionError
from stageline.core.pipeline.context import RunContext
from stageline.core.pipeline.registry import StageRegistry
from stageline.core.pipeline.stage import Stage
from stageline.core.pipeline.types import RunResult, StageStatus, StageTrace


_UNFINGERPRINTABLE = (TypeError, AttributeError, pickle.PicklingError)
_UNCOPYABLE = (TypeError, copy.Error, pickle.PicklingError)


def _copy_option(value: Any) -> Any:
    # recursos (locks, conexões) são compartilhados, não copiados
    try:
        return copy.deepcopy(value)
    except _UNCOPYABLE:
        return value


def _ms_since(start: float) -> int:
    return int(round((time.perf_counter() - start) * 1000))


class Pipeline:
    """Pipeline sequencial de Stages nomeados com cache por Stage.

    Use `build(...)` para construir; a estrutura (lista de Stages) é imutável
    após a construção.
    """

    def __init__(
        self,
        *,
        stages: Sequence[Stage],
        cache: Optional[StageCache] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        # cada pipeline é dono de cópias dos Stages declarados
        owned = [copy.copy(s) for s in stages]
        self._registry = StageRegistry.from_stages(owned)
        self.config: Dict[str, Any] = resolve_config(config)
        self._params: Dict[str, Dict[str, Any]] = {
            s.name: dict(s.config) for s in self._registry.list()
        }
        self.cache: Optional[StageCache] = None
        if self.cache_enabled:
            self.cache = cache if cache is not None else build_cache(self.config)

    @property
    def cache_enabled(self) -> bool:
        cache_cfg = (self.config.get("engine", {}) or {}).get("cache", {}) or {}
        return bool(cache_cfg.get("enabled", True))

    # ------------------------------------------------------------------
    # Estrutura e parâmetros
    # ------------------------------------------------------------------
    @property
    def stage_names(self) -> List[str]:
        return self._registry.names()

    @property
    def stages(self) -> List[Stage]:
        return self._registry.list()

    def __len__(self) -> int:
        return len(self._registry)

    def __repr__(self) -> str:
        return f"Pipeline(stages={self.stage_names!r})"

    def get_params(self) -> Dict[str, Any]:
        """Configuração persistida achatada em Parameter Paths."""
        return {
            f"{name}.{option}": value
            for name in self.stage_names
            for option, value in self._params[name].items()
        }

    def effective_config(self, overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, Dict[str, Any]]:
        """Configuração efetiva por Stage para uma chamada, sem mutar o Pipeline.

        Raises:
            UnknownParameterError: Se algum path não resolver.
        """
        resolved = self._registry.resolve(dict(overrides or {}))
        effective: Dict[str, Dict[str, Any]] = {}
        for name in self.stage_names:
            cfg = {option: _copy_option(v) for option, v in self._params[name].items()}
            cfg.update(resolved.get(name, {}))
            effective[name] = cfg
        return effective

    def set_params(self, params: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> "Pipeline":
        """Reconfigura de forma persistente (validada como overrides).

        Aceita um mapa de paths e/ou kwargs com `__` no lugar de `.`
        (ex.: `set_params(scale__factor=3)`).
        """
        updates: Dict[str, Any] = dict(params or {})
        for key, value in kwargs.items():
            stage_name, sep, option = key.rpartition("__")
            updates[f"{stage_name}.{option}" if sep else key] = value
        resolved = self._registry.resolve(updates)
        for name, opts in resolved.items():
            self._params[name].update(opts)
        return self

    def with_params(self, overrides: Optional[Mapping[str, Any]] = None) -> "Pipeline":
        """Novo Pipeline independente com `overrides` persistidos; compartilha o cache."""
        clone = Pipeline(stages=self.stages, cache=self.cache, config=self.config)
        clone._params = self.effective_config(overrides)
        return clone

    def clear_cache(self) -> None:
        if self.cache is not None:
            self.cache.clear()

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------
    @staticmethod
    def _warn_bypass(ctx: RunContext, name: str, what: str, e: BaseException) -> None:
        msg = f"{what} not fingerprintable, cache bypassed: {e.__class__.__name__}"
        ctx.add_warning(stage=name, message=msg)
        ctx.log(stage=name, level="warning", message=msg)

    def _lookup_key(self, ctx: RunContext, name: str, cfg: Dict[str, Any], value: Any) -> Tuple[str, str, Optional[CacheKey]]:
        try:
            cfg_fp = stage_fingerprint(name, cfg)
        except _UNFINGERPRINTABLE as e:
            self._warn_bypass(ctx, name, "config", e)
            return "", "", None
        try:
            in_fp = fingerprint(value)
        except _UNFINGERPRINTABLE as e:
            self._warn_bypass(ctx, name, "input", e)
            return cfg_fp, "", None
        return cfg_fp, in_fp, CacheKey(name, cfg_fp, in_fp)

    def execute(self, value: Any, overrides: Optional[Mapping[str, Any]] = None) -> RunResult:
        """Executa o pipeline e devolve o RunResult com traces e eventos.

        Raises:
            UnknownParameterError: Paths inválidos (antes de qualquer Stage).
            StageExecutionError: Falha de um Stage; `exc.trace` contém os
                StageTrace até a falha (inclusive).
        """
        effective = self.effective_config(overrides)
        ctx = RunContext(
            run_id=uuid.uuid4().hex,
            created_at=datetime.now(timezone.utc),
            effective_config=effective,
            meta={"cache_enabled": self.cache is not None},
        )
        ctx.log(stage=None, level="info", message="run_started", stages=self.stage_names)

        use_cache = self.cache is not None
        traces: List[StageTrace] = []
        current = value

        for position, stage in enumerate(self._registry.list()):
            name = stage.name
            cfg = ctx.config_for(name)
            start = time.perf_counter()

            key: Optional[CacheKey] = None
            cfg_fp, in_fp = "", ""
            if use_cache:
                cfg_fp, in_fp, key = self._lookup_key(ctx, name, cfg, current)

            if key is not None:
                hit, cached = self.cache.get(key)  # type: ignore[union-attr]
                if hit:
                    current = cached
                    traces.append(StageTrace(name, position, StageStatus.CACHED, cfg_fp, in_fp, _ms_since(start)))
                    ctx.log(stage=name, level="info", message="cache_hit", position=position)
                    continue

            try:
                output = stage.apply(cfg, current)
            except Exception as e:
                err = StageExecutionError(name, position, e)
                traces.append(
                    StageTrace(
                        name,
                        position,
                        StageStatus.FAILED,
                        cfg_fp,
                        in_fp,
                        _ms_since(start),
                        error=exception_to_error(err).to_dict(),
                    )
                )
                ctx.log(
                    stage=name,
                    level="error",
                    message="stage_failed",
                    position=position,
                    error_type=e.__class__.__name__,
                    error_message=str(e) or "error",
                )
                err.trace = list(traces)
                raise err from e

            if key is not None:
                self.cache.put(key, output)  # type: ignore[union-attr]
            current = output
            traces.append(StageTrace(name, position, StageStatus.EXECUTED, cfg_fp, in_fp, _ms_since(start)))
            ctx.log(stage=name, level="info", message="stage_executed", position=position)

        ctx.log(
            stage=None,
            level="info",
            message="run_finished",
            cache_hits=sum(1 for t in traces if t.status == StageStatus.CACHED),
        )

        return RunResult(
            run_id=ctx.run_id,
            output=current,
            traces=traces,
            events=list(ctx.events),
            effective_config=effective,
            config_hash=compute_config_hash(self.config),
        )

    def run(self, value: Any, overrides: Optional[Mapping[str, Any]] = None) -> Any:
        """Aplica os Stages em ordem e retorna a saída do último."""
        return self.execute(value, overrides).output


def build(
    stages: Sequence[Stage],
    *,
    cache: Optional[StageCache] = None,
    config: Optional[Dict[str, Any]] = None,
) -> Pipeline:
    """
    Constrói um Pipeline a partir de uma sequência ordenada de Stages.

    Args:
        stages: Stages em ordem de execução.
        cache: Cache injetado (opcional). Quando omitido, o cache é construído
            de `engine.cache` e só existe se `engine.cache.enabled` for true.
        config: Configuração do engine (deep-merge sobre DEFAULT_CONFIG).

    Raises:
        EmptyPipelineError: Sequência vazia.
        InvalidStageError: Item que não satisfaz o protocolo de Stage.
        DuplicateStageNameError: Nomes repetidos (todos listados).
    """
    return Pipeline(stages=stages, cache=cache, config=config)
