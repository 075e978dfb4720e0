"""
StageLine: Canonical Error Structures (v1)

Representação serializável de erros, usada onde uma falha precisa ser
registrada em vez de propagada:
- StageTrace de um Stage que falhou
- candidatos que falharam durante a busca (SearchResult.failures)
- payload agregado de SearchExhaustedError

Erros devem ser explícitos, serializáveis e acionáveis.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from .exceptions import StagelineException


@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

STAGE_EXECUTION_ERROR = "STAGE_EXECUTION_ERROR"
UNKNOWN_PARAMETER = "UNKNOWN_PARAMETER"
CANDIDATE_FAILED = "CANDIDATE_FAILED"
SEARCH_EXHAUSTED = "SEARCH_EXHAUSTED"

_CODES = {
    "StageExecutionError": STAGE_EXECUTION_ERROR,
    "UnknownParameterError": UNKNOWN_PARAMETER,
    "SearchExhaustedError": SEARCH_EXHAUSTED,
}


def exception_to_error(exc: BaseException) -> ErrorPayload:
    """Converte exceções em ErrorPayload.

    Regras:
    - StagelineException: preserva message/details/hint; código pelo catálogo
      (ou nome da classe quando não catalogado).
    - Outras exceções: STAGE_EXECUTION_ERROR com a classe da exceção, sem stack trace.
    """
    if isinstance(exc, StagelineException):
        name = exc.__class__.__name__
        return ErrorPayload(
            type=_CODES.get(name, name),
            message=exc.message,
            details=dict(exc.details),
            hint=exc.hint,
        )

    return ErrorPayload(
        type=STAGE_EXECUTION_ERROR,
        message=str(exc) or "Erro inesperado durante execução",
        details={"exception_class": exc.__class__.__name__},
        hint="Verifique a exceção original e a configuração do Stage",
    )


def candidate_failed(
    *,
    index: int,
    params: Dict[str, Any],
    fold: int,
    exc: BaseException,
) -> ErrorPayload:
    """Payload de um candidato de busca que falhou em um fold."""
    cause = exception_to_error(exc)
    return ErrorPayload(
        type=CANDIDATE_FAILED,
        message=f"Candidate {index} failed on fold {fold}",
        details={
            "candidate": index,
            "params": {k: json_safe(v) for k, v in params.items()},
            "fold": fold,
            "error": cause.to_dict(),
        },
        hint="The candidate is excluded from ranking; other candidates are unaffected.",
    )


def candidate_score_not_finite(
    *,
    index: int,
    params: Dict[str, Any],
    fold_scores: List[float],
    aggregate: str,
) -> ErrorPayload:
    """Payload de um candidato cujo score agregado é NaN ou infinito."""
    return ErrorPayload(
        type=CANDIDATE_FAILED,
        message=f"Candidate {index} has a non-finite {aggregate} score",
        details={
            "candidate": index,
            "params": {k: json_safe(v) for k, v in params.items()},
            "fold_scores": [repr(float(s)) for s in fold_scores],
        },
        hint="Check the scorer on small validation folds (e.g. r2 with a single sample).",
    )


def json_safe(obj: Any) -> Any:
    if obj is None:
        return None
    if isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, (list, tuple)):
        return [json_safe(x) for x in obj]
    if isinstance(obj, dict):
        return {str(k): json_safe(v) for k, v in obj.items()}
    return str(obj)
