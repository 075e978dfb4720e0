"""
StageLine: Canonical Exceptions (v1)

Exceções tipadas levantadas pelo engine, pelo registry e pela busca.

Objetivo:
- Permitir que o chamador trate falhas por tipo (sem inspecionar mensagens)
- Carregar dados estruturados (`details`) e uma dica acionável (`hint`)
- Mapear de forma determinística para `ErrorPayload` (ver core.errors)

Regras:
- Nenhuma exceção é convertida em valor default ou fallback silencioso
- O core não faz retry: quem orquestra a execução decide
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional


class StagelineException(Exception):
    """Base class para exceções internas do StageLine.

    Importante:
    - Sempre carregar dados estruturados (serializáveis) em `details`
    - Mensagem curta e humana
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})
        self.hint = hint

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Construção do pipeline
# ---------------------------------------------------------------------------

class DuplicateStageNameError(StagelineException, ValueError):
    """Dois ou mais Stages declarados com o mesmo nome."""

    def __init__(self, names: Iterable[str]) -> None:
        dup = sorted(set(names))
        super().__init__(
            f"Duplicate stage name(s): {', '.join(dup)}",
            details={"duplicates": dup},
            hint="Stage names must be unique within a pipeline; rename one of the stages.",
        )
        self.names: List[str] = dup


class EmptyPipelineError(StagelineException, ValueError):
    """Pipeline construído sem nenhum Stage (política v1: rejeitado)."""

    def __init__(self) -> None:
        super().__init__(
            "Pipeline must declare at least one stage",
            hint="Declare at least one stage; empty pipelines are not treated as identity.",
        )


class InvalidStageError(StagelineException, TypeError):
    """Objeto declarado como Stage não satisfaz o protocolo (name/config/apply)."""


# ---------------------------------------------------------------------------
# Validação de chamadas
# ---------------------------------------------------------------------------

class UnknownParameterError(StagelineException, ValueError):
    """Parameter Paths que não resolvem para um par (stage, opção) existente.

    Sempre reporta *todos* os paths inválidos, ordenados.
    """

    def __init__(self, paths: Iterable[str]) -> None:
        bad = sorted(set(str(p) for p in paths))
        super().__init__(
            f"Unknown parameter path(s): {', '.join(bad)}",
            details={"paths": bad},
            hint="Use '<stage_name>.<option_name>' with an option declared in the stage config.",
        )
        self.paths: List[str] = bad


# ---------------------------------------------------------------------------
# Execução
# ---------------------------------------------------------------------------

class StageExecutionError(StagelineException, RuntimeError):
    """Falha no `apply` de um Stage; a execução foi interrompida nesse ponto.

    `__cause__` aponta para a exceção original. Quando levantada por
    `Pipeline.execute`, `trace` contém os StageTrace até a falha.
    """

    def __init__(self, stage_name: str, position: int, cause: BaseException) -> None:
        super().__init__(
            f"Stage '{stage_name}' (position {position}) failed: "
            f"{cause.__class__.__name__}: {cause}",
            details={
                "stage": stage_name,
                "position": position,
                "exc_type": cause.__class__.__name__,
                "exc_message": str(cause),
            },
            hint="Inspect the wrapped exception (__cause__); no retry is applied by the engine.",
        )
        self.stage_name = stage_name
        self.position = position
        self.cause = cause
        self.trace: List[Any] = []


# ---------------------------------------------------------------------------
# Busca de hiperparâmetros
# ---------------------------------------------------------------------------

class SearchExhaustedError(StagelineException, RuntimeError):
    """Todos os candidatos da busca falharam."""

    def __init__(self, failures: List[Dict[str, Any]]) -> None:
        super().__init__(
            f"All {len(failures)} search candidate(s) failed",
            details={"failures": list(failures)},
            hint="Check the per-candidate errors; at least one configuration must run on every fold.",
        )
        self.failures = list(failures)


class InvalidSearchGridError(StagelineException, ValueError):
    """Search Grid estruturalmente inválido (não-mapa, lista vazia, ...)."""


class InvalidSplitPlanError(StagelineException, ValueError):
    """Split Plan inválido (fold vazio, índices sobrepostos ou fora do intervalo)."""
