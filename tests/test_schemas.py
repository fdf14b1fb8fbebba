"""Test YAML schema validation and config loading.

Tests for src.utils.validators:
    - Shipped configs/film.v1.yaml loads and validates
    - Defaults for optional blocks (filter, logging)
    - Reject invalid configs with the offending key in the message
    - Bounds checking: negative sizes, overflow, non-finite radii
    - Schema versioning and the ``schema`` alias
    - LoggingConfig.setup_kwargs() matches setup_logging()

Run:
    pytest tests/test_schemas.py -v
"""

import inspect
from pathlib import Path

import pytest
from pydantic import ValidationError

from src.utils import fs, validators
from src.utils.logging_config import setup_logging

CONFIG_PATH = Path(__file__).resolve().parent.parent / "configs" / "film.v1.yaml"


def _minimal():
    return {"schema": "film.v1", "resolution": {"width": 8, "height": 6}}


def _write(tmp_path, data):
    path = tmp_path / "film.yaml"
    fs.atomic_yaml_dump(data, path)
    return path


# ============================================================================
# VALID CONFIGS
# ============================================================================

def test_shipped_config_loads():
    cfg = validators.load_film_config(CONFIG_PATH)

    assert cfg.schema_version == "film.v1"
    assert (cfg.resolution.width, cfg.resolution.height) == (160, 120)
    assert cfg.filter.kind == "mitchell"
    assert cfg.filter.params["b"] == pytest.approx(1 / 3)
    assert cfg.encoding == "srgb"
    assert cfg.on_resolution_change == "clear"


def test_defaults(tmp_path):
    cfg = validators.load_film_config(_write(tmp_path, _minimal()))

    assert cfg.filter.kind == "mitchell"
    assert (cfg.filter.radius_x, cfg.filter.radius_y) == (2.0, 2.0)
    assert cfg.filter.params == {}
    assert cfg.splat_scale == 1.0
    assert cfg.logging.log_level == "INFO"


def test_populate_by_field_name():
    cfg = validators.FilmConfigV1(schema_version="film.v1", resolution={"width": 1, "height": 1})
    assert cfg.schema_version == "film.v1"


def test_log_level_normalized():
    assert validators.LoggingConfig(log_level="debug").log_level == "DEBUG"


def test_setup_kwargs_match_setup_logging():
    kwargs = validators.LoggingConfig(json=True).setup_kwargs()
    params = inspect.signature(setup_logging).parameters

    assert set(kwargs) <= set(params)
    assert kwargs["json"] is True


# ============================================================================
# INVALID CONFIGS
# ============================================================================

def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        validators.load_film_config(tmp_path / "missing.yaml")


def test_non_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(validators.ConfigError, match="must be a mapping"):
        validators.load_film_config(path)


def test_config_error_is_value_error():
    assert issubclass(validators.ConfigError, ValueError)


@pytest.mark.parametrize("patch,key", [
    ({"schema": "film.v2"}, "schema"),
    ({"resolution": {"width": -1, "height": 4}}, "width"),
    ({"resolution": {"width": 70000, "height": 70000}}, "overflows"),
    ({"filter": {"kind": "sinc"}}, "filter kind"),
    ({"filter": {"radius_x": -0.5}}, "radius_x"),
    ({"filter": {"radius_y": float("inf")}}, "radius_y"),
    ({"encoding": "hdr10"}, "encoding"),
    ({"on_resolution_change": "resize"}, "on_resolution_change"),
    ({"logging": {"log_level": "LOUD"}}, "log_level"),
])
def test_invalid_values_rejected(tmp_path, patch, key):
    data = _minimal()
    data.update(patch)

    with pytest.raises(validators.ConfigError) as excinfo:
        validators.load_film_config(_write(tmp_path, data))

    message = str(excinfo.value)
    assert key in message
    assert "film.yaml" in message


def test_missing_resolution(tmp_path):
    with pytest.raises(validators.ConfigError, match="resolution"):
        validators.load_film_config(_write(tmp_path, {"schema": "film.v1"}))


def test_model_raises_validation_error_directly():
    with pytest.raises(ValidationError):
        validators.ResolutionConfig(width=4, height=-2)


def test_kind_registry_matches_encodings():
    from src.utils.color import ENCODINGS
    assert set(validators.ENCODING_NAMES) == set(ENCODINGS)
