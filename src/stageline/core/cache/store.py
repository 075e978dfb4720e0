"""Cache de saídas de Stages (v1).

Uma entrada de cache é indexada por `CacheKey(stage, config_fingerprint,
input_fingerprint)` e guarda a saída do Stage. O cache é um colaborador
explícito: pertence ao Pipeline (criado a partir da config) ou é injetado
pelo chamador, e sobrevive a chamadas individuais de `run`.

Backends:
- MemoryCache: dict em memória
- DiskCache: um arquivo joblib por chave (persistência entre processos)

Concorrência:
- Um único `threading.Lock` protege get/put/clear.
- Não há single-flight: misses concorrentes na mesma chave podem recomputar
  o Stage; o último `put` vence e ambos os valores são equivalentes.

Limites explícitos:
- Não calcula fingerprints (ver core.config.hashing)
- Não expira entradas; invalidação ocorre por mudança de fingerprint ou `clear()`
- MemoryCache devolve cópias; DiskCache desserializa um objeto novo a cada `get`
"""

from __future__ import annotations

import copy
import pickle
import shutil
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Protocol, Tuple, Union, runtime_checkable

import joblib

from stageline.core.config.errors import InvalidConfigValueError


@dataclass(frozen=True)
class CacheKey:
    """Chave canônica de uma entrada de cache."""

    stage: str
    config_fingerprint: str
    input_fingerprint: str

    def as_tuple(self) -> Tuple[str, str, str]:
        return (self.stage, self.config_fingerprint, self.input_fingerprint)


@runtime_checkable
class StageCache(Protocol):
    """Contrato mínimo de um cache (get/put/clear)."""

    def get(self, key: CacheKey) -> Tuple[bool, Any]:
        """Retorna (hit, valor); valor é None quando hit == False."""
        ...

    def put(self, key: CacheKey, value: Any) -> None:
        ...

    def clear(self) -> None:
        ...

    def __len__(self) -> int:
        ...

    def __contains__(self, key: object) -> bool:
        ...



def _isolated(value: Any) -> Any:
    try:
        return copy.deepcopy(value)
    except (TypeError, copy.Error, pickle.PicklingError):
        return value


class MemoryCache:
    """Cache em memória, seguro para uso concorrente por threads.

    Valores são copiados (deepcopy) no `put` e no `get`: mutar uma saída
    devolvida não altera a entrada guardada. Valores que não suportam
    deepcopy são guardados por referência e devem ser tratados como imutáveis.
    """

    def __init__(self) -> None:
        self._entries: Dict[CacheKey, Any] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: CacheKey) -> Tuple[bool, Any]:
        with self._lock:
            if key in self._entries:
                self.hits += 1
                return True, _isolated(self._entries[key])
            self.misses += 1
            return False, None

    def put(self, key: CacheKey, value: Any) -> None:
        with self._lock:
            self._entries[key] = _isolated(value)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def keys(self):
        with self._lock:
            return list(self._entries.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries


class DiskCache:
    """Cache persistido em disco (joblib), um arquivo por chave.

    Layout determinístico:
        <directory>/<stage>/<config_fingerprint>/<input_fingerprint>.joblib
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def entry_path(self, key: CacheKey) -> Path:
        return self.directory / key.stage / key.config_fingerprint / f"{key.input_fingerprint}.joblib"

    def get(self, key: CacheKey) -> Tuple[bool, Any]:
        path = self.entry_path(key)
        with self._lock:
            if not path.exists():
                self.misses += 1
                return False, None
            value = joblib.load(path)
            self.hits += 1
            return True, value

    def put(self, key: CacheKey, value: Any) -> None:
        path = self.entry_path(key)
        with self._lock:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            joblib.dump(value, tmp)
            tmp.replace(path)

    def clear(self) -> None:
        with self._lock:
            if self.directory.exists():
                shutil.rmtree(self.directory)
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            if not self.directory.exists():
                return 0
            return sum(1 for _ in self.directory.rglob("*.joblib"))

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, CacheKey):
            return False
        with self._lock:
            return self.entry_path(key).exists()


def build_cache(config: Dict[str, Any]) -> StageCache:
    """Constrói o cache a partir de `engine.cache` da configuração resolvida.

    Raises:
        InvalidConfigValueError: backend desconhecido ou `dir` ausente para disk.
    """
    cache_cfg = ((config or {}).get("engine", {}) or {}).get("cache", {}) or {}
    backend = str(cache_cfg.get("backend", "memory")).strip().lower()

    if backend == "memory":
        return MemoryCache()

    if backend == "disk":
        directory = cache_cfg.get("dir")
        if not isinstance(directory, str) or not directory.strip():
            raise InvalidConfigValueError("Invalid config: engine.cache.dir is required when backend=disk")
        return DiskCache(directory)

    raise InvalidConfigValueError("Invalid config: engine.cache.backend must be one of: memory, disk")


__all__ = ["CacheKey", "StageCache", "MemoryCache", "DiskCache", "build_cache"]
