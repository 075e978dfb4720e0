# tests/core/config/test_loader.py
"""
Testes do loader canônico de configuração.

Os testes asseguram que:
- DEFAULT_CONFIG é sempre a base da configuração resolvida
- o arquivo de defaults é obrigatório; o local é opcional
- o arquivo local tem prioridade sobre os defaults
- formatos e tipos raiz inválidos são rejeitados

Limites explícitos:
    - Não valida Parameter Paths de Stages
"""

from pathlib import Path

import pytest

try:
    from stageline.core.config.loader import DEFAULT_CONFIG, load_config, load_mapping_file, resolve_config
    from stageline.core.config.errors import (
        ConfigTypeConflictError,
        DefaultsNotFoundError,
        InvalidConfigRootTypeError,
        UnsupportedConfigFormatError,
    )
except Exception as e:  # noqa: BLE001
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing config loader. Implement:\n"
            "- src/stageline/core/config/loader.py (load_config, resolve_config, DEFAULT_CONFIG)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_missing_defaults_raises(tmp_path: Path):
    _require_imports()
    with pytest.raises(DefaultsNotFoundError):
        load_config(defaults_path=str(tmp_path / "missing.yaml"))


def test_missing_local_is_ok(tmp_path: Path, project_like_config_defaults_yaml):
    _require_imports()
    defaults = tmp_path / "stageline.defaults.yaml"
    defaults.write_text(project_like_config_defaults_yaml, encoding="utf-8")

    out = load_config(defaults_path=str(defaults), local_path=str(tmp_path / "nope.yaml"))
    assert out["engine"]["cache"]["enabled"] is True
    assert out["search"]["aggregate"] == "mean"


def test_load_defaults_and_local(tmp_path: Path, project_like_config_defaults_yaml, project_like_config_local_yaml):
    """
    O arquivo local sobrescreve apenas as chaves que declara; o restante
    vem dos defaults do projeto e, por fim, de DEFAULT_CONFIG.
    """
    _require_imports()
    defaults = tmp_path / "stageline.defaults.yaml"
    local = tmp_path / "stageline.local.yaml"
    defaults.write_text(project_like_config_defaults_yaml, encoding="utf-8")
    local.write_text(project_like_config_local_yaml, encoding="utf-8")

    out = load_config(defaults_path=str(defaults), local_path=str(local))
    assert out["engine"]["cache"]["enabled"] is False
    assert out["engine"]["cache"]["backend"] == "memory"
    assert out["search"]["aggregate"] == "median"
    assert out["search"]["n_jobs"] == 1
    # vindo de DEFAULT_CONFIG
    assert out["search"]["split"]["n_splits"] == DEFAULT_CONFIG["search"]["split"]["n_splits"]


def test_json_defaults_supported(tmp_path: Path):
    _require_imports()
    defaults = tmp_path / "defaults.json"
    defaults.write_text('{"search": {"refit": false}}', encoding="utf-8")
    out = load_config(defaults_path=str(defaults))
    assert out["search"]["refit"] is False


def test_empty_file_is_empty_mapping(tmp_path: Path):
    _require_imports()
    p = tmp_path / "empty.yaml"
    p.write_text("", encoding="utf-8")
    assert load_mapping_file(p) == {}


def test_invalid_root_type_raises(tmp_path: Path):
    _require_imports()
    p = tmp_path / "defaults.yaml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(InvalidConfigRootTypeError):
        load_config(defaults_path=str(p))


def test_unsupported_extension_raises(tmp_path: Path):
    _require_imports()
    p = tmp_path / "defaults.toml"
    p.write_text("a = 1\n", encoding="utf-8")
    with pytest.raises(UnsupportedConfigFormatError):
        load_config(defaults_path=str(p))


def test_resolve_config_never_mutates_defaults():
    _require_imports()
    out = resolve_config({"engine": {"cache": {"enabled": False}}})
    assert out["engine"]["cache"]["enabled"] is False
    assert DEFAULT_CONFIG["engine"]["cache"]["enabled"] is True
    assert resolve_config() == DEFAULT_CONFIG
    assert resolve_config() is not DEFAULT_CONFIG


def test_resolve_config_rejects_type_conflict():
    _require_imports()
    with pytest.raises(ConfigTypeConflictError):
        resolve_config({"search": {"refit": "yes"}})
    with pytest.raises(InvalidConfigRootTypeError):
        resolve_config(["not-a-dict"])  # type: ignore[arg-type]
