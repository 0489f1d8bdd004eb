from __future__ import annotations

from pathlib import Path

import pytest

from quizdeck.core import config as cfg


def _write(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    return path


def test_defaults_without_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    loaded = cfg.load_config()
    assert loaded.path is None
    expected = tmp_path.resolve() / "data/quizzes/blockchain.json"
    assert loaded.quiz.source == expected
    assert loaded.session.loading_delay_seconds == pytest.approx(1.2)
    assert loaded.session.transition_delay_seconds == pytest.approx(0.3)
    assert loaded.ai.model == "gpt-4o-mini"
    assert loaded.ai.api_base is None
    assert loaded.logging.level == "INFO"
    assert loaded.logging.directory == cfg.DEFAULT_LOG_DIR


def test_file_overrides_and_relative_source(tmp_path):
    path = _write(
        tmp_path / "quizdeck.toml",
        """
[quiz]
source = "quizzes/python.json"

[session]
loading_delay_seconds = 0

[ai]
model = "gpt-test"
api_base = "http://localhost:8080/v1"

[logging]
level = "debug"
dir = "logs"
""",
    )
    loaded = cfg.load_config(path)
    assert loaded.path == path.resolve()
    assert loaded.quiz.source == tmp_path.resolve() / "quizzes/python.json"
    assert loaded.session.loading_delay_seconds == 0.0
    assert loaded.session.settle_delay_seconds == pytest.approx(0.05)
    assert loaded.ai.model == "gpt-test"
    assert loaded.ai.api_base == "http://localhost:8080/v1"
    assert loaded.logging.level == "DEBUG"
    assert loaded.logging.directory == Path("logs")


def test_absolute_source_is_kept(tmp_path):
    target = tmp_path / "elsewhere" / "quiz.json"
    path = _write(tmp_path / "q.toml", f'[quiz]\nsource = "{target}"\n')
    assert cfg.load_config(path).quiz.source == target


def test_env_variable_selects_file(tmp_path, monkeypatch):
    path = _write(tmp_path / "custom.toml", '[ai]\nmodel = "from-env"\n')
    monkeypatch.setenv(cfg.CONFIG_PATH_ENV, str(path))
    assert cfg.load_config().ai.model == "from-env"


def test_env_variable_pointing_nowhere(tmp_path, monkeypatch):
    monkeypatch.setenv(cfg.CONFIG_PATH_ENV, str(tmp_path / "missing.toml"))
    with pytest.raises(cfg.ConfigError) as exc:
        cfg.load_config()
    assert cfg.CONFIG_PATH_ENV in str(exc.value)


def test_working_directory_file_is_used(tmp_path, monkeypatch):
    _write(tmp_path / cfg.CONFIG_FILENAME, '[ai]\nmodel = "local"\n')
    monkeypatch.chdir(tmp_path)
    assert cfg.load_config().ai.model == "local"


def test_explicit_missing_file(tmp_path):
    with pytest.raises(cfg.ConfigError):
        cfg.load_config(tmp_path / "nope.toml")


def test_invalid_toml(tmp_path):
    path = _write(tmp_path / "bad.toml", "[quiz\nsource=")
    with pytest.raises(cfg.ConfigError) as exc:
        cfg.load_config(path)
    assert "parse" in str(exc.value)


@pytest.mark.parametrize(
    "body, message",
    [
        ('[quiz]\nextra = 1\n', "Unknown configuration key 'quiz.extra'"),
        ('quiz = "flat"\n', "Expected table for 'quiz'"),
        ('[session]\nloading_delay_seconds = -1\n', "zero or greater"),
        ('[session]\ntransition_delay_seconds = "fast"\n', "must be a number"),
        ('[ai]\ntemperature = 3.5\n', "between"),
        ('[ai]\nmax_tokens = 0\n', "positive integer"),
        ('[ai]\nrequest_timeout_seconds = true\n', "positive integer"),
        ('[ai]\nmodel = "  "\n', "non-empty string"),
        ('[logging]\nlevel = "LOUD"\n', "must be one of"),
        ('[logging]\nverbose = "yes"\n', "boolean"),
    ],
)
def test_validation_errors(tmp_path, body, message):
    path = _write(tmp_path / "quizdeck.toml", body)
    with pytest.raises(cfg.ConfigError) as exc:
        cfg.load_config(path)
    assert message in str(exc.value)


def test_merge_defaults_is_recursive():
    base = {"a": {"b": 1, "c": 2}, "d": 3}
    cfg.merge_defaults(base, {"a": {"c": 5}})
    assert base == {"a": {"b": 1, "c": 5}, "d": 3}


def test_write_toml_template_respects_overwrite(tmp_path):
    path = tmp_path / "nested" / "out.toml"
    cfg.write_toml_template(path, template="a = 1\n")
    assert path.read_text(encoding="utf-8") == "a = 1\n"
    with pytest.raises(cfg.ConfigError):
        cfg.write_toml_template(path, template="a = 2\n")
    cfg.write_toml_template(path, template="a = 2\n", overwrite=True)
    assert path.read_text(encoding="utf-8") == "a = 2\n"
