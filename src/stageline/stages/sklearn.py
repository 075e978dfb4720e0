"""Stage que envolve um estimador/transformador do scikit-learn.

A cada `apply` um estimador novo é instanciado com a configuração efetiva
(`estimator_cls(**config)`), de modo que a saída é função pura de
(config, entrada) e pode ser cacheada com segurança.

Comportamento por tipo de entrada:
- FoldData + kind transformador (transform/scaler/encoder):
  fit em X_train (e y_train), transform em X_train e X_eval → novo FoldData
- FoldData + kind ESTIMATOR:
  fit em (X_train, y_train) → predições para X_eval
- array/DataFrame + kind transformador: fit_transform do próprio valor
- array/DataFrame + kind ESTIMATOR: TypeError (não há target para ajustar)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Type

from stageline.core.pipeline.types import StageKind

from .data import FoldData


@dataclass
class SklearnStage:
    """Stage uniforme para classes do scikit-learn."""

    name: str
    estimator_cls: Type[Any]
    config: Dict[str, Any] = field(default_factory=dict)
    kind: StageKind = StageKind.TRANSFORM

    def make_estimator(self, config: Mapping[str, Any]) -> Any:
        return self.estimator_cls(**dict(config))

    def apply(self, config: Mapping[str, Any], value: Any) -> Any:
        estimator = self.make_estimator(config)

        if isinstance(value, FoldData):
            if self.kind == StageKind.ESTIMATOR:
                estimator.fit(value.X_train, value.y_train)
                return estimator.predict(value.X_eval)
            Xtr = estimator.fit_transform(value.X_train, value.y_train)
            Xev = estimator.transform(value.X_eval)
            return FoldData(X_train=Xtr, y_train=value.y_train, X_eval=Xev)

        if self.kind == StageKind.ESTIMATOR:
            raise TypeError(f"Stage '{self.name}': estimator stages require FoldData input")
        return estimator.fit_transform(value)


__all__ = ["SklearnStage"]
