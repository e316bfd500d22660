"""
Tests for the command-line entry point.
"""

import logging

import pytest

from core.config import Config
from main import main


@pytest.fixture(autouse=True)
def reset_root_handlers():
    root = logging.getLogger()
    handlers = list(root.handlers)
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()


@pytest.fixture
def config_path(tmp_path):
    data_path = tmp_path / "data.csv"
    data_path.write_text(
        "age,sex,educ,race,income,married\n59,1,9,1,10000,1\n31,0,1,3,20000,0\n",
        encoding="utf-8"
    )
    config = Config()
    config.data.input_path = str(data_path)
    path = tmp_path / "config.ini"
    config.to_ini(str(path))
    return str(path)


def test_main_prints_snapshot(config_path, tmp_path, capsys):
    """Test that the CLI prints the snapshot table and exits 0."""
    code = main(["--config", config_path, "--log-dir", str(tmp_path / "logs")])
    assert code == 0
    out = capsys.readouterr().out
    assert "Field: educ" in out
    assert "Mechanism: Laplace" in out


def test_main_with_overrides(config_path, tmp_path, capsys):
    """Test that command line overrides reach the engine."""
    code = main([
        "--config", config_path,
        "--field", "income",
        "--mechanism", "gaussian",
        "--accuracy-index", "3",
        "--log-dir", str(tmp_path / "logs"),
    ])
    assert code == 0
    out = capsys.readouterr().out
    assert "Field: income" in out
    assert "Mechanism: Gaussian" in out
    assert "Accuracy: 4" in out


def test_main_dry_run(config_path, tmp_path):
    """Test that --dry-run validates without noising."""
    assert main(["--config", config_path, "--dry-run", "--log-dir", str(tmp_path / "logs")]) == 0


def test_main_missing_config(tmp_path):
    """Test that a missing config file exits with code 1."""
    assert main(["--config", str(tmp_path / "missing.ini"), "--log-dir", str(tmp_path / "logs")]) == 1


def test_main_invalid_alpha(config_path, tmp_path):
    """Test that an invalid alpha override exits with code 1."""
    assert main(["--config", config_path, "--alpha", "1.5", "--log-dir", str(tmp_path / "logs")]) == 1


def test_main_unknown_field(config_path, tmp_path):
    """Test that an unknown field override exits with code 1."""
    assert main(["--config", config_path, "--field", "salary", "--log-dir", str(tmp_path / "logs")]) == 1
