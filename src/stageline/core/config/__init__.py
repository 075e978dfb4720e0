# src/stageline/core/config/__init__.py
"""
Camada de configuração do StageLine.

Responsabilidades do pacote:
    - Carregamento de arquivos de configuração (YAML/JSON)
    - Resolução da configuração efetiva via deep-merge determinístico
    - Hash canônico de configuração e fingerprints de conteúdo

A configuração do engine (cache, busca, splits) é separada da configuração
de cada Stage; esta última é endereçada por Parameter Paths
(`<stage>.<opção>`) e validada pelo `StageRegistry`.
"""

from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    InvalidConfigValueError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash, fingerprint, stage_fingerprint
from .loader import DEFAULT_CONFIG, load_config, load_mapping_file, resolve_config
from .merge import deep_merge

__all__ = [
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "InvalidConfigValueError",
    "UnsupportedConfigFormatError",
    "DEFAULT_CONFIG",
    "compute_config_hash",
    "deep_merge",
    "fingerprint",
    "load_config",
    "load_mapping_file",
    "resolve_config",
    "stage_fingerprint",
]
