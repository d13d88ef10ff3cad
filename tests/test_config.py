import pytest

from mold.config import DEFAULT_SHELL, ConfigError, load_config, split_environments


def test_defaults_without_environment(tmp_path):
    config = load_config({}, tmp_path)
    assert config.moldfile is None
    assert config.environments == []
    assert config.shell == DEFAULT_SHELL
    assert config.log_level == "warning"


def test_environment_variables():
    config = load_config(
        {"MOLDENV": "ci, release,,", "MOLD_SHELL": "/bin/bash", "MOLD_FILE": "tasks.mold", "MOLD_LOG_LEVEL": "debug"}
    )
    assert config.environments == ["ci", "release"]
    assert config.shell == "/bin/bash"
    assert config.moldfile == "tasks.mold"
    assert config.log_level == "debug"


def test_default_shell_keyword_means_system_shell():
    assert load_config({"MOLD_SHELL": "default"}).shell is None


def test_reads_from_process_environment(monkeypatch):
    monkeypatch.setenv("MOLDENV", "staging")
    assert load_config().environments == ["staging"]


def test_mold_toml_section(tmp_path):
    (tmp_path / "mold.toml").write_text(
        '[mold]\nfile = "build.mold"\nenvironments = ["ci"]\nshell = "/bin/bash"\nlog_level = "info"\n',
        encoding="utf-8",
    )
    config = load_config({}, tmp_path)
    assert config.moldfile == "build.mold"
    assert config.environments == ["ci"]
    assert config.shell == "/bin/bash"
    assert config.log_level == "info"

    overridden = load_config({"MOLDENV": "release", "MOLD_FILE": "other"}, tmp_path)
    assert overridden.environments == ["release"]
    assert overridden.moldfile == "other"


def test_invalid_mold_toml(tmp_path):
    (tmp_path / "mold.toml").write_text("[mold\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config({}, tmp_path)
    (tmp_path / "mold.toml").write_text('mold = "flat"\n', encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config({}, tmp_path)


def test_split_environments():
    assert split_environments(None) == []
    assert split_environments(" a ,b") == ["a", "b"]
