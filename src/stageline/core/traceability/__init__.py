"""
Rastreabilidade do StageLine.

`RunManifest` e Event Log serializáveis para auditoria de runs; construídos
explicitamente a partir de `RunResult` (ver `manifest_from_run`).
"""
