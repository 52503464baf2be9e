import pytest

from bfuzz.fuzzer.models import ConfigError
from bfuzz.utils.config import (
    FuzzConfig,
    Settings,
    build_config,
    get_config_path,
    load_settings,
    load_yaml_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("BFUZZ_BATCH_SIZE", "BFUZZ_TIMEOUT_MS", "BFUZZ_RETRIES", "BFUZZ_SETTLE_DELAY_MS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults():
    config = FuzzConfig(host="example.local", port=4444)
    assert config.batch_size == 1000
    assert config.timeout_ms == 250
    assert config.timeout == 0.25
    assert config.retries == 3
    assert config.newline is True
    assert config.settle_delay == 0.1
    assert config.ignore == []


@pytest.mark.parametrize("overrides", [
    {"port": 0},
    {"port": 70000},
    {"batch_size": 0},
    {"timeout_ms": 0},
    {"retries": 0},
    {"ignore_regex": ["(bad"]},
])
def test_invalid_values_raise_config_error(overrides):
    values = {"host": "h", "port": 1}
    values.update(overrides)
    with pytest.raises(ConfigError):
        build_config(values)


def test_missing_host_raises_config_error():
    with pytest.raises(ConfigError):
        build_config({"port": 80})


def test_environment_settings_supply_defaults(monkeypatch):
    monkeypatch.setenv("BFUZZ_BATCH_SIZE", "42")
    monkeypatch.setenv("BFUZZ_TIMEOUT_MS", "100")
    config = build_config({"host": "h", "port": 1})
    assert config.batch_size == 42
    assert config.timeout_ms == 100


def test_yaml_file_and_precedence(monkeypatch, tmp_path):
    monkeypatch.setenv("BFUZZ_BATCH_SIZE", "42")
    monkeypatch.setenv("FUZZ_HOST", "10.0.0.5")
    path = tmp_path / "bfuzz.yaml"
    path.write_text(
        "fuzz:\n"
        "  host: ${FUZZ_HOST}\n"
        "  port: 21\n"
        "  batch_size: 64\n"
        "  ignore:\n"
        "    - '500 Unknown\\r\\n'\n"
    )

    config = build_config({"port": 2121, "batch_size": None}, str(path))

    assert config.host == "10.0.0.5"
    assert config.port == 2121
    assert config.batch_size == 64
    assert config.ignore == ["500 Unknown\\r\\n"]


def test_yaml_without_section(tmp_path):
    path = tmp_path / "flat.yaml"
    path.write_text("host: localhost\nport: 7\nnewline: false\n")
    config = build_config({}, str(path))
    assert config.newline is False


def test_yaml_must_be_a_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ConfigError):
        build_config({}, str(path))


def test_missing_yaml_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_yaml_config(str(tmp_path / "missing.yaml"))


def test_get_config_path_prefers_cwd_config_dir(tmp_path):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "bfuzz.yaml").write_text("port: 1\n")
    assert get_config_path("bfuzz.yaml") == tmp_path / "config" / "bfuzz.yaml"


def test_settings_log_level_default():
    assert Settings().log_level == "WARNING"


def test_malformed_yaml_raises_config_error(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("host: [unclosed\n")
    with pytest.raises(ConfigError, match="not valid YAML"):
        build_config({}, str(path))


@pytest.mark.parametrize("section", ["fuzz: [a, b]\n", "fuzz: just-a-string\n", "fuzz:\n"])
def test_fuzz_section_must_be_a_mapping(tmp_path, section):
    path = tmp_path / "section.yaml"
    path.write_text(section)
    with pytest.raises(ConfigError, match="'fuzz' section"):
        build_config({"host": "h", "port": 1}, str(path))


def test_bad_environment_value_raises_config_error(monkeypatch):
    monkeypatch.setenv("BFUZZ_BATCH_SIZE", "lots")
    with pytest.raises(ConfigError, match="Invalid environment settings"):
        load_settings()
    with pytest.raises(ConfigError):
        build_config({"host": "h", "port": 1})
