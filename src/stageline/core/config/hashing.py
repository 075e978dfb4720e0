# src/stageline/core/config/hashing.py
"""
Hashing canônico e fingerprints de conteúdo do StageLine.

Este módulo concentra toda a geração de identidades determinísticas usadas
pelo engine:
    - hash da configuração efetiva do engine (rastreabilidade)
    - fingerprint de configuração de um Stage (chave de cache)
    - fingerprint de valores de entrada (chave de cache)

Princípios fundamentais:
    - Hashing estrutural, nunca baseado em identidade (`id()`)
    - Dois valores construídos independentemente, mas iguais, produzem
      o mesmo fingerprint
    - Independente da ordem de chaves em dicts e de elementos em sets
    - SHA-256 sobre JSON canônico (chaves ordenadas, separadores compactos)

Política de canonicalização (v1):
    - None, bool, int, float, str → valor JSON direto
    - list / tuple                → lista (sequências são estruturais)
    - dict                        → pares (chave, valor) ordenados
    - set / frozenset             → elementos ordenados
    - dataclasses                 → nome qualificado + campos
    - escalares numpy             → valor Python equivalente
    - arrays numpy, objetos pandas e demais valores → `joblib.hash`
      (hash de conteúdo, sensível a dtype e shape)

Invariantes:
    - O valor gerado é sempre uma string hexadecimal de 64 caracteres
    - `1`, `1.0` e `True` produzem fingerprints distintos
    - `(1, 2)` e `[1, 2]` produzem o mesmo fingerprint

Limites explícitos:
    - Não persiste hashes
    - Não consulta nem popula caches
"""

import dataclasses
import hashlib
import json
from typing import Any, Dict, Mapping

import joblib
import numpy as np


def _sha256_json(obj: Any) -> str:
    canonical_json = json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera um hash determinístico da configuração efetiva do engine.

    Política de hashing (v1):
        - Serialização JSON canônica
        - Ordenação estável de chaves
        - Separadores compactos
        - Codificação UTF-8
        - Algoritmo SHA-256

    Args:
        config (Dict[str, Any]): Configuração efetiva (JSON-serializável).

    Returns:
        str: Hash SHA-256 hexadecimal da configuração.

    Raises:
        TypeError: Se o objeto fornecido não for um dicionário.
    """
    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )
    return _sha256_json(config)


def _sort_token(canonical: Any) -> str:
    return json.dumps(canonical, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _canonical(value: Any) -> Any:
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, (int, float)):
        return value

    if isinstance(value, np.generic):
        return _canonical(value.item())

    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]

    if isinstance(value, Mapping):
        pairs = [[_canonical(k), _canonical(v)] for k, v in value.items()]
        pairs.sort(key=lambda kv: _sort_token(kv[0]))
        return {"__dict__": pairs}

    if isinstance(value, (set, frozenset)):
        items = [_canonical(v) for v in value]
        items.sort(key=_sort_token)
        return {"__set__": items}

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = {f.name: _canonical(getattr(value, f.name)) for f in dataclasses.fields(value)}
        return {"__dataclass__": type(value).__qualname__, "fields": fields}

    # arrays, DataFrames, estimadores e objetos arbitrários: hash de conteúdo
    return {
        "__content__": joblib.hash(value, hash_name="sha1"),
        "type": f"{type(value).__module__}.{type(value).__qualname__}",
    }


def fingerprint(value: Any) -> str:
    """
    Calcula o fingerprint estrutural de um valor arbitrário.

    Usado para identificar entradas de Stages na chave de cache. Valores
    estruturalmente iguais produzem o mesmo fingerprint, mesmo quando
    construídos de forma independente.

    Args:
        value (Any): Valor a identificar (escalar, coleção, array, DataFrame, ...).

    Returns:
        str: SHA-256 hexadecimal (64 caracteres).
    """
    return _sha256_json(_canonical(value))


def stage_fingerprint(name: str, config: Mapping[str, Any]) -> str:
    """
    Fingerprint da identidade de um Stage com sua configuração efetiva completa.

    A configuração inteira participa do fingerprint, de modo que overrides
    diferentes nunca compartilham entradas de cache.
    """
    return fingerprint({"stage": name, "config": dict(config)})
