"""
Core do StageLine.

Arquitetura:
    - core.config       → carregamento, merge, hashing e fingerprints
    - core.pipeline     → protocolo de Stage, registry, contexto e tipos
    - core.cache        → cache de saídas de Stages (memória / disco)
    - core.engine       → Pipeline (build, run, execute)
    - core.traceability → Manifest e Event Log

O core é determinístico, testável de forma isolada e não mantém estado
global: caches e configuração são sempre explícitos.
"""
