"""
Cache de saídas de Stages.

O cache é sempre um colaborador explícito (injetado ou construído a partir
da configuração), nunca estado global. Ver `store` para backends e a
disciplina de concorrência.
"""

from .store import CacheKey, DiskCache, MemoryCache, StageCache, build_cache

__all__ = ["CacheKey", "DiskCache", "MemoryCache", "StageCache", "build_cache"]
