# src/stageline/core/config/merge.py
"""
Deep-merge canônico de configuração.

Resolve a configuração efetiva do engine a partir de defaults e overrides
explícitos (arquivo local ou dict passado pelo chamador).

Política de merge (v1):
    - dict → merge recursivo por chave
    - list → sobrescrita total (sem merge elemento a elemento)
    - escalar → sobrescrita direta
    - conflito de tipos → ConfigTypeConflictError

Invariantes:
    - Nenhum input é mutado
    - A mesma entrada sempre produz a mesma saída

Limites explícitos:
    - Não trata Parameter Paths de Stages (isso é papel do StageRegistry)
    - Não realiza coerção de tipos
"""

from copy import deepcopy
from typing import Any, Dict

from .errors import ConfigTypeConflictError


def _compatible(base_value: Any, override_value: Any) -> bool:
    # None em qualquer lado e int sobre float são aceitos; o resto exige o mesmo tipo
    if type(base_value) is type(override_value):
        return True
    if base_value is None or override_value is None:
        return True
    if isinstance(base_value, float) and isinstance(override_value, int) and not isinstance(override_value, bool):
        return True
    return False


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Combina `override` sobre `base` e devolve um novo dicionário.

    Args:
        base (Dict[str, Any]): Configuração base (ex.: DEFAULT_CONFIG).
        override (Dict[str, Any]): Overrides explícitos.

    Returns:
        Dict[str, Any]: Nova configuração resultante.

    Raises:
        ConfigTypeConflictError: Se a mesma chave tiver tipos incompatíveis.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts no nível raiz, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )

    result: Dict[str, Any] = deepcopy(base)

    for key, override_value in override.items():
        if key not in result:
            result[key] = deepcopy(override_value)
            continue

        base_value = result[key]

        if isinstance(base_value, dict) and isinstance(override_value, dict):
            result[key] = deep_merge(base_value, override_value)
            continue

        if isinstance(override_value, list):
            result[key] = deepcopy(override_value)
            continue

        if not _compatible(base_value, override_value):
            raise ConfigTypeConflictError(
                f"Conflito de tipo na chave '{key}': "
                f"{type(base_value).__name__} vs {type(override_value).__name__}"
            )

        result[key] = deepcopy(override_value)

    return result
