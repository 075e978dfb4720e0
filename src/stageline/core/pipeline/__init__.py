"""
# Pipeline Core: StageLine

Contratos e estruturas fundamentais de um pipeline sequencial.

## Componentes

- **types**
  - `StageKind`, `StageStatus`, `StageTrace`, `RunResult`

- **stage**
  - `Stage` (Protocol): `name`, `kind`, `config`, `apply(config, value)`
  - `FunctionStage`: Stage genérico baseado em função

- **registry**
  - `StageRegistry`: unicidade de nomes, ordem declarada, Parameter Paths

- **context**
  - `RunContext`: configuração efetiva, eventos e warnings de uma run

## Invariantes

- Nomes de Stage são únicos dentro de um pipeline
- Parameter Paths só resolvem para opções declaradas
"""

from .context import RunContext
from .registry import StageRegistry, split_path
from .stage import FunctionStage, Stage
from .types import RunResult, StageKind, StageStatus, StageTrace

__all__ = [
    "FunctionStage",
    "RunContext",
    "RunResult",
    "Stage",
    "StageKind",
    "StageRegistry",
    "StageStatus",
    "StageTrace",
    "split_path",
]
