"""Tests for TOML encoding, decoding, layout correction and saving."""

import tomllib
from pathlib import Path

import pytest

from cubicsvr_config.config import loader
from cubicsvr_config.config.errors import ConfigParseError
from cubicsvr_config.config.loader import (
    apply_layout,
    encode,
    load,
    load_file,
    parse,
    render,
    save,
    to_text,
)
from cubicsvr_config.config.schema import (
    ConfidenceConfig,
    CubicsvrConfig,
    GrpcConfig,
    HttpApiConfig,
    HttpConfig,
    HttpOpsConfig,
    LoggingConfig,
    PathConfiguration,
    RecognizerConfig,
    StorageConfig,
)

HAND_WRITTEN = """\
Version = 5

[server]
[server.http]
[server.grpc]
Address = "0.0.0.0:2727"

[license]
KeyFile = "cubic.license"

[[models]]
ID = "en_US-8khz"
Name = "English US 8kHz"
ModelConfigPath = "en_US-8khz/model.config"

[[models]]
ID = "de_DE-16khz"
Name = "German 16kHz"
ModelConfigPath = "de_DE-16khz/model.config"
FormatterConfigPath = "de_DE-16khz/formatter.config"

[models.confidence]
ModelPath = "de_DE-16khz/conf.model"
LMPath = "de_DE-16khz/conf.lm"

[logging]

[recognizer]

[storage]
"""


def _full_config() -> CubicsvrConfig:
    config = CubicsvrConfig(path_configuration=PathConfiguration(resource_root="Svr"))
    config.server.grpc = GrpcConfig(address="0.0.0.0:2727", cert_file="grpc.crt", key_file="grpc.key")
    config.server.http = HttpConfig(
        api=HttpApiConfig(address="0.0.0.0:8080", enable_web_demo=True, web_root_path="/web"),
        ops=HttpOpsConfig(address="127.0.0.1:8081"),
    )
    config.logging = LoggingConfig(disable_info=False, enable_debug=True)
    config.license.key_file = "key.lic"
    config.license.usage_log = "usage.log"
    config.recognizer = RecognizerConfig(max_ttl=3_600_000_000_000, max_idle_timeout=30_000_000_000, max_audio_bytes=1 << 30)
    config.storage = StorageConfig(type="local", base_path="/var/lib/cubicsvr")
    model = config.add_model("m1", "English", "en/model.config")
    model.formatter_config_path = "en/formatter.config"
    model.confidence = ConfidenceConfig(model_path="en/conf.model", lm_path="en/conf.lm")
    config.add_model("m2", "German", "de/model.config")
    return config


def _lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines()]


# ==============================================================================
# encode / decode
# ==============================================================================


def test_round_trip_preserves_serialized_fields() -> None:
    config = _full_config()

    decoded = load(encode(config), config.path_configuration)

    assert decoded == config


def test_round_trip_of_defaults() -> None:
    config = CubicsvrConfig()

    assert load(to_text(config)) == config


def test_encode_uses_file_key_names() -> None:
    text = encode(_full_config())
    data = tomllib.loads(text)

    assert data["Version"] == 5
    assert data["server"]["grpc"]["Address"] == "0.0.0.0:2727"
    assert data["server"]["http"]["api"]["EnableWebDemo"] is True
    assert data["license"]["KeyFile"] == "key.lic"
    assert data["recognizer"]["MaxTTL"] == 3_600_000_000_000
    assert data["storage"]["Type"] == "local"
    assert data["models"][0]["ID"] == "m1"
    assert data["models"][0]["confidence"]["LMPath"] == "en/conf.lm"


def test_encode_never_writes_path_configuration() -> None:
    text = encode(_full_config())

    assert "path_configuration" not in text
    assert "Svr" not in text
    assert "resource_root" not in text


def test_encode_omits_unset_optional_fields() -> None:
    data = tomllib.loads(encode(CubicsvrConfig()))

    assert "logging" not in data
    assert "recognizer" not in data
    assert "storage" not in data
    assert "http" not in data["server"]
    assert data["server"]["grpc"] == {}


def test_parse_hand_written_file() -> None:
    config = parse(HAND_WRITTEN)

    assert config.version == 5
    assert config.server.grpc.address == "0.0.0.0:2727"
    assert config.server.http == HttpConfig()
    assert config.license.key_file == "cubic.license"
    assert [m.id for m in config.models] == ["en_US-8khz", "de_DE-16khz"]
    assert config.models[1].confidence.lm_path == "de_DE-16khz/conf.lm"
    assert config.models[0].confidence is None
    assert config.logging == LoggingConfig()
    assert config.storage == StorageConfig()


def test_parse_rejects_malformed_text() -> None:
    with pytest.raises(ConfigParseError):
        parse("Version = \n[server")


def test_load_malformed_text_returns_none(log_messages) -> None:
    assert load("[license\nKeyFile = ") is None
    assert any("Failed to parse config" in m for m in log_messages)


def test_load_incomplete_model_returns_none() -> None:
    assert load('[[models]]\nName = "no id"\nModelConfigPath = "x"\n') is None


def test_load_wrong_type_returns_none() -> None:
    assert load('Version = "five"\n') is None


def test_load_without_override_keeps_default_paths(documents_dir: Path) -> None:
    config = load(HAND_WRITTEN)

    assert config.path_configuration == PathConfiguration()
    assert not documents_dir.exists()


def test_load_with_override_replaces_paths_and_provisions(documents_dir: Path) -> None:
    paths = PathConfiguration(resource_root="Svr", license_subdir="keys", models_subdir="asr")

    config = load(HAND_WRITTEN, paths)

    assert config.path_configuration == paths
    assert (documents_dir / "Svr" / "keys").is_dir()
    assert (documents_dir / "Svr" / "asr").is_dir()


def test_parse_ignores_path_configuration_table(documents_dir: Path) -> None:
    config = load('Version = 5\n\n[path_configuration]\nresource_root = "Elsewhere"\n')

    assert config.path_configuration == PathConfiguration()
    assert not documents_dir.exists()


def test_parse_ignores_invalid_path_configuration_table() -> None:
    config = load('Version = 5\n\n[path_configuration]\nresource_root = "/etc"\n')

    assert config is not None
    assert config.path_configuration == PathConfiguration()


def test_parse_ignores_python_field_names() -> None:
    config = load(
        """\
version = 7

[license]
key_file = "x.lic"

[[models]]
ID = "m1"
Name = "One"
ModelConfigPath = "one.config"
model_config_path = "other.config"
"""
    )

    assert config.version == 5
    assert config.license.key_file == ""
    assert config.models[0].model_config_path == "one.config"


def test_parse_requires_file_key_names() -> None:
    assert load('[[models]]\nid = "m1"\nname = "One"\nmodel_config_path = "one.config"\n') is None


def test_load_file(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(HAND_WRITTEN, encoding="utf-8")

    assert load_file(path).license.key_file == "cubic.license"
    assert load_file(tmp_path / "missing.toml") is None


# ==============================================================================
# layout correction
# ==============================================================================


def test_apply_layout_expands_server_headers() -> None:
    text = apply_layout('Version = 5\n\n[server.grpc]\nAddress = "x"\n')

    assert text.startswith('Version = 5\n\n[server]\n[server.http]\n[server.grpc]\nAddress = "x"\n')
    assert text.endswith("[logging]\n\n[recognizer]\n\n[storage]\n")


def test_apply_layout_only_adds_missing_placeholders() -> None:
    text = apply_layout("[server.grpc]\n\n[logging]\nEnableDebug = true\n")

    assert _lines(text).count("[logging]") == 1
    assert text.endswith("[recognizer]\n\n[storage]\n")


def test_render_orders_server_sections_and_appends_placeholders() -> None:
    text = render(CubicsvrConfig())
    lines = _lines(text)

    assert lines.index("[server]") < lines.index("[server.http]") < lines.index("[server.grpc]")
    assert text.rstrip().endswith("[logging]\n\n[recognizer]\n\n[storage]")
    tomllib.loads(text)


def test_render_full_config_is_valid_toml() -> None:
    config = _full_config()
    text = render(config)
    lines = _lines(text)

    assert lines.count("[server]") == 1
    assert lines.count("[server.http]") == 1
    assert lines.count("[logging]") == 1
    assert lines.index("[server.http]") < lines.index("[server.grpc]")
    assert load(text, config.path_configuration) == config


def test_render_after_reload_does_not_duplicate_sections() -> None:
    reloaded = load(render(CubicsvrConfig()))
    text = render(reloaded)
    lines = _lines(text)

    assert reloaded.server.http == HttpConfig()
    assert lines.count("[server.http]") == 1
    assert lines.count("[logging]") == 1
    assert lines.count("[storage]") == 1
    tomllib.loads(text)


# ==============================================================================
# save
# ==============================================================================


def test_save_writes_absolute_view_and_returns_relative_view(documents_dir: Path, tmp_path: Path) -> None:
    config = CubicsvrConfig(
        path_configuration=PathConfiguration(resource_root="Cubicsvr", license_subdir="license", models_subdir="models")
    )
    config.license.key_file = "key.lic"
    destination = tmp_path / "live" / "cubicsvr.toml"

    returned = save(config, destination)

    written = destination.read_text(encoding="utf-8")
    absolute_key = str(documents_dir / "Cubicsvr" / "license" / "key.lic")
    assert tomllib.loads(written)["license"]["KeyFile"] == absolute_key
    assert tomllib.loads(returned)["license"]["KeyFile"] == "key.lic"
    assert absolute_key not in returned
    assert config.license.key_file == "key.lic"


def test_save_resolves_model_paths_but_not_confidence(documents_dir: Path, tmp_path: Path) -> None:
    config = _full_config()
    destination = tmp_path / "cubicsvr.toml"

    returned = save(config, destination)

    models_dir = documents_dir / "Svr" / "models"
    written = tomllib.loads(destination.read_text(encoding="utf-8"))
    assert written["models"][0]["ModelConfigPath"] == str(models_dir / "en" / "model.config")
    assert written["models"][0]["FormatterConfigPath"] == str(models_dir / "en" / "formatter.config")
    assert written["models"][0]["confidence"]["ModelPath"] == "en/conf.model"
    assert written["models"][1]["ModelConfigPath"] == str(models_dir / "de" / "model.config")
    assert "FormatterConfigPath" not in written["models"][1]

    relative = tomllib.loads(returned)
    assert relative["models"][0]["ModelConfigPath"] == "en/model.config"
    assert relative["models"][0]["FormatterConfigPath"] == "en/formatter.config"


def test_save_output_layout(tmp_path: Path) -> None:
    destination = tmp_path / "cubicsvr.toml"

    returned = save(CubicsvrConfig(), destination)

    for text in (returned, destination.read_text(encoding="utf-8")):
        lines = _lines(text)
        assert lines.index("[server]") < lines.index("[server.http]") < lines.index("[server.grpc]")
        assert text.rstrip().endswith("[logging]\n\n[recognizer]\n\n[storage]")


def test_save_replaces_existing_file(tmp_path: Path) -> None:
    destination = tmp_path / "cubicsvr.toml"
    destination.write_text("stale contents", encoding="utf-8")

    assert save(CubicsvrConfig(), destination) is not None
    assert "stale" not in destination.read_text(encoding="utf-8")


def test_save_without_documents_dir_writes_nothing(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(loader, "resolve_roots", lambda _: None)
    destination = tmp_path / "cubicsvr.toml"

    assert save(CubicsvrConfig(), destination) is None
    assert not destination.exists()


def test_save_write_failure_returns_none(tmp_path: Path, log_messages) -> None:
    destination = tmp_path / "occupied"
    destination.mkdir()

    assert save(CubicsvrConfig(), destination) is None
    assert destination.is_dir()
    assert list(destination.parent.glob(".occupied.*")) == []
    assert any("Failed to save config" in m for m in log_messages)
