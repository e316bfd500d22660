"""
Tests for configuration defaults, validation and INI round-trips.
"""

import pytest

from core.config import Config


def test_defaults():
    """Test the default configuration values."""
    config = Config()
    assert config.noise.mechanism == "laplace"
    assert config.noise.alpha == 0.05
    assert config.noise.min_accuracy == 1
    assert config.noise.max_accuracy_index == 100
    assert config.data.default_field == "educ"
    assert config.data.switch_fields == ["educ", "income"]


def test_validate_requires_input_path():
    """Test that validation needs an input path."""
    config = Config()
    with pytest.raises(ValueError, match="input_path"):
        config.validate()
    config.data.input_path = "data/data.csv"
    config.validate()


@pytest.mark.parametrize("attr, value", [
    ("mechanism", "exponential"),
    ("alpha", 0.0),
    ("alpha", 1.0),
    ("min_accuracy", 0),
    ("max_accuracy_index", -1),
])
def test_invalid_noise_settings(attr, value):
    """Test that out-of-range noise settings fail validation."""
    config = Config()
    config.data.input_path = "data/data.csv"
    setattr(config.noise, attr, value)
    with pytest.raises(ValueError):
        config.validate()


def test_invalid_delimiter():
    """Test that a multi-character delimiter fails validation."""
    config = Config()
    config.data.input_path = "data/data.csv"
    config.data.delimiter = ";;"
    with pytest.raises(ValueError, match="delimiter"):
        config.validate()


def test_ini_round_trip(tmp_path):
    """Test that a config survives to_ini() and from_ini()."""
    config = Config()
    config.noise.mechanism = "gaussian"
    config.noise.alpha = 0.1
    config.noise.max_accuracy_index = 42
    config.noise.use_fast_sampling = True
    config.data.input_path = "census.csv"
    config.data.has_header = False
    config.data.default_field = "income"
    config.data.switch_fields = ["income", "age", "educ"]

    path = tmp_path / "config.ini"
    config.to_ini(str(path))
    loaded = Config.from_ini(str(path))

    assert loaded.noise == config.noise
    assert loaded.data == config.data


def test_missing_ini_file(tmp_path):
    """Test that loading a missing INI file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        Config.from_ini(str(tmp_path / "missing.ini"))


def test_partial_ini_keeps_defaults(tmp_path):
    """Test that keys absent from the INI file keep their defaults."""
    path = tmp_path / "partial.ini"
    path.write_text("[noise]\nalpha = 0.2\n\n[data]\ninput_path = x.csv\n", encoding="utf-8")
    config = Config.from_ini(str(path))
    assert config.noise.alpha == 0.2
    assert config.noise.mechanism == "laplace"
    assert config.data.input_path == "x.csv"
    assert config.data.switch_fields == ["educ", "income"]
