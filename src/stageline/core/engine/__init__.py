"""
Engine do StageLine.

Executa pipelines sequenciais de Stages com:
    - validação de Parameter Paths antes de qualquer execução
    - overrides com escopo de chamada
    - cache por Stage indexado por (nome, config efetiva, entrada)
    - interrupção imediata na primeira falha (StageExecutionError)

Invariantes:
    - A ordem de execução é exatamente a ordem declarada
    - Nenhum Stage é pulado ou reordenado
    - Cada Stage é executado no máximo uma vez por run
"""

from .engine import Pipeline, build

__all__ = ["Pipeline", "build"]
