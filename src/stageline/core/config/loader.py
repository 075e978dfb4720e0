# src/stageline/core/config/loader.py
"""
Loader canônico de configuração do StageLine.

A configuração efetiva do engine é resolvida a partir de:
    - `DEFAULT_CONFIG` embutido (quando o chamador passa um dict ou nada)
    - um arquivo de defaults (obrigatório quando se carrega do disco)
    - um arquivo local de overrides (opcional)

Seções reconhecidas (v1):

engine:
  cache:
    enabled: true          # desabilita o uso de cache em Pipeline.run
    backend: memory        # memory | disk
    dir: .stageline_cache  # usado apenas por backend=disk
search:
  aggregate: mean          # mean | median
  refit: true
  n_jobs: 1
  split:
    kind: kfold            # kfold | stratified_kfold | time_series
    n_splits: 5
    shuffle: false
    seed: 42

Invariantes:
    - O resultado é sempre um dicionário puro (`dict`)
    - Overrides nunca mutam os defaults
    - A mesma entrada sempre produz a mesma configuração final

Limites explícitos:
    - Não valida parâmetros de Stages (Parameter Paths)
    - Não persiste configuração ou hash
"""

from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Optional
import json

import yaml  # PyYAML

from .merge import deep_merge
from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)


DEFAULT_CONFIG: Dict[str, Any] = {
    "engine": {
        "cache": {
            "enabled": True,
            "backend": "memory",
            "dir": ".stageline_cache",
        },
    },
    "search": {
        "aggregate": "mean",
        "refit": True,
        "n_jobs": 1,
        "split": {
            "kind": "kfold",
            "n_splits": 5,
            "shuffle": False,
            "seed": 42,
        },
    },
}


def load_mapping_file(path: Path) -> Dict[str, Any]:
    """
    Carrega um arquivo YAML/JSON cujo conteúdo raiz deve ser um dicionário.

    Arquivos vazios são interpretados como `{}`. Também é usado para
    carregar Search Grids persistidos (ver `stageline.search.grid.load_grid`).

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não for suportada.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for um dicionário.
    """
    if not path.exists():
        raise DefaultsNotFoundError(f"Arquivo de configuração não encontrado: {path}")

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}"
        )

    return data


def resolve_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Aplica `config` (opcional) sobre `DEFAULT_CONFIG` via deep-merge.

    Raises:
        InvalidConfigRootTypeError: Se `config` não for um dicionário.
        ConfigTypeConflictError: Se houver conflito de tipos com os defaults.
    """
    if config is None:
        return deepcopy(DEFAULT_CONFIG)
    if not isinstance(config, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(config).__name__}"
        )
    return deep_merge(DEFAULT_CONFIG, config)


def load_config(
    *,
    defaults_path: str,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Carrega e resolve a configuração efetiva a partir de arquivos.

    Política de resolução:
        - `DEFAULT_CONFIG` é sempre a base
        - O arquivo de defaults é obrigatório e aplicado sobre a base
        - O arquivo local é opcional; quando existe, tem prioridade

    Args:
        defaults_path (str): Caminho do arquivo de defaults do projeto.
        local_path (Optional[str]): Caminho opcional de overrides locais.

    Returns:
        Dict[str, Any]: Configuração final resolvida.
    """
    defaults = load_mapping_file(Path(defaults_path))
    effective = resolve_config(defaults)

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(effective, load_mapping_file(local_file))

    return effective
