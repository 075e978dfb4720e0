# src/stageline/core/config/errors.py
"""
Exceções da camada de configuração do StageLine.

Estas exceções representam violações estruturais da configuração do
engine (arquivos de defaults, formato, tipo raiz e conflitos de merge).
Elas não representam falhas de execução de Stages nem erros de busca.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma delas é tratada com fallback silencioso
"""


class ConfigError(Exception):
    """Base para erros de carregamento e resolução de configuração."""


class DefaultsNotFoundError(ConfigError):
    """
    O arquivo de defaults informado não existe.

    O arquivo de defaults é obrigatório quando a configuração é carregada
    do disco; o loader nunca cria ou infere defaults a partir do ambiente.
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Extensão de arquivo de configuração não suportada.

    Formatos aceitos: YAML (.yaml, .yml) e JSON (.json).
    """


class InvalidConfigRootTypeError(ConfigError):
    """O conteúdo raiz da configuração não é um mapa (`dict`)."""


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipo entre base e override durante o deep-merge.

    Exemplo:
        - base:     {"engine": {"cache": {"enabled": true}}}
        - override: {"engine": {"cache": "off"}}

    Nenhum merge parcial é produzido quando o conflito é detectado.
    """


class InvalidConfigValueError(ConfigError):
    """Valor de configuração com tipo ou domínio inválido (ex.: backend de cache desconhecido)."""
