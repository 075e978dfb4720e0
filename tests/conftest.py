# tests/conftest.py
"""
Fixtures compartilhados para testes do StageLine.

Este módulo define fixtures reutilizáveis que fornecem:
- Stages mínimos e determinísticos (scale/offset)
- Stages instrumentados que contam chamadas de `apply`
- configurações YAML de defaults/local para o loader
- um dataset de classificação pequeno e reprodutível

Decisões arquiteturais:
    - Stages de teste usam FunctionStage ou duck typing, nunca herança
    - Contadores de chamadas são explícitos (dict mutável), sem mocks
    - Imports do pacote são realizados de forma lazy dentro das fixtures

Invariantes:
    - Nenhuma fixture realiza I/O
    - Dados retornados são determinísticos (seed fixa)

Limites explícitos:
    - Não substituir testes de integração
    - Não conter lógica de domínio
"""

import numpy as np
import pytest


# =====================================================
# Config fixtures
# =====================================================

@pytest.fixture
def project_like_config_defaults_yaml() -> str:
    """
    YAML de defaults semelhante a um `stageline.defaults.yaml` real.

    Usado por:
        - Testes do loader de config
        - Testes de deep-merge (defaults + local)
    """
    return """\
engine:
  cache:
    enabled: true
    backend: memory
search:
  aggregate: mean
  n_jobs: 1
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """YAML de overrides locais (apenas o que muda)."""
    return """\
engine:
  cache:
    enabled: false
search:
  aggregate: median
"""


# =====================================================
# Stage fixtures
# =====================================================

@pytest.fixture
def call_counter() -> dict:
    """Contador de chamadas de `apply` por nome de Stage."""
    return {}


@pytest.fixture
def scale_offset_stages(call_counter):
    """
    Pipeline canônico de exemplo: scale (factor=2) → offset (amount=1).

    run(3) == 3 * 2 + 1 == 7

    Cada `apply` incrementa `call_counter[<nome>]`, permitindo verificar
    hits de cache sem inspecionar o cache diretamente.
    """
    from stageline.core.pipeline.stage import FunctionStage

    def _scale(x, factor):
        call_counter["scale"] = call_counter.get("scale", 0) + 1
        return x * factor

    def _offset(x, amount):
        call_counter["offset"] = call_counter.get("offset", 0) + 1
        return x + amount

    return [
        FunctionStage("scale", _scale, {"factor": 2}),
        FunctionStage("offset", _offset, {"amount": 1}),
    ]


@pytest.fixture
def scale_offset_pipeline(scale_offset_stages):
    from stageline.core.engine.engine import build

    return build(scale_offset_stages)


@pytest.fixture
def classification_data():
    """Dataset binário pequeno e separável (60 amostras, 3 features)."""
    rng = np.random.RandomState(0)
    X = rng.normal(size=(60, 3))
    y = (X[:, 0] + 0.5 * X[:, 1] > 0).astype(int)
    return X, y
