"""YAML schema validation and config loading.

Provides centralized validation for configuration files using pydantic:
    - Film schema (film.v1.yaml): resolution, reconstruction filter,
      display encoding, splat scale, resolution-change policy, logging

All loaders fail fast with actionable messages (offending key, expected
range, file path).

Units:
    - Resolution: pixels
    - Filter radii: pixels (half-width of the support in each axis)

Usage:
    from src.utils import validators

    cfg = validators.load_film_config("configs/film.v1.yaml")
    film = Film.from_config(cfg)
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Names accepted by src.film.filters.create_filter
FILTER_KINDS = ("box", "triangle", "gaussian", "mitchell", "catmull_rom", "lanczos_sinc")

# Names accepted by src.utils.color.get_encoding
ENCODING_NAMES = ("srgb", "linear", "gamma22", "reinhard", "aces")

RESOLUTION_POLICIES = ("clear", "raise")


class ConfigError(ValueError):
    """Raised when a configuration file fails validation."""
    pass


# ============================================================================
# FILM SCHEMA V1
# ============================================================================

class ResolutionConfig(BaseModel):
    """Output image size in pixels."""
    width: int = Field(..., ge=0, description="Width in pixels")
    height: int = Field(..., ge=0, description="Height in pixels")

    @field_validator('height')
    @classmethod
    def validate_product(cls, v: int, info) -> int:
        width = info.data.get('width')
        if width is not None and width * v > 2 ** 31 - 1:
            raise ValueError(f"width * height overflows: {width} * {v}")
        return v


class FilterConfig(BaseModel):
    """Reconstruction filter selection.

    ``params`` is forwarded to the filter constructor (e.g. ``alpha`` for
    gaussian, ``b``/``c`` for mitchell, ``tau`` for lanczos_sinc).
    """
    kind: str = Field("mitchell", description=f"One of {FILTER_KINDS}")
    radius_x: float = Field(2.0, ge=0.0, allow_inf_nan=False, description="Half-width in x (px)")
    radius_y: float = Field(2.0, ge=0.0, allow_inf_nan=False, description="Half-width in y (px)")
    params: Dict[str, float] = Field(default_factory=dict)

    @field_validator('kind')
    @classmethod
    def validate_kind(cls, v: str) -> str:
        if v not in FILTER_KINDS:
            raise ValueError(f"filter kind must be one of {FILTER_KINDS}, got '{v}'")
        return v


class LoggingConfig(BaseModel):
    """Arguments for src.utils.logging_config.setup_logging."""
    log_level: str = Field("INFO")
    log_file: Optional[str] = None
    json_format: bool = Field(False, alias="json")
    color: bool = True
    rotate: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('log_level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}, got '{v}'")
        return v.upper()

    def setup_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments ready for setup_logging()."""
        return {
            "log_level": self.log_level,
            "log_file": self.log_file,
            "json": self.json_format,
            "color": self.color,
            "rotate": self.rotate,
        }


class FilmConfigV1(BaseModel):
    """Film configuration (film.v1.yaml schema)."""
    schema_version: str = Field("film.v1", alias="schema", description="Schema version")
    resolution: ResolutionConfig
    filter: FilterConfig = Field(default_factory=FilterConfig)
    encoding: str = Field("srgb", description=f"One of {ENCODING_NAMES}")
    splat_scale: float = Field(1.0, allow_inf_nan=False)
    on_resolution_change: str = Field("clear", description=f"One of {RESOLUTION_POLICIES}")
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "film.v1":
            raise ValueError(f"Expected schema 'film.v1', got '{v}'")
        return v

    @field_validator('encoding')
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        if v not in ENCODING_NAMES:
            raise ValueError(f"encoding must be one of {ENCODING_NAMES}, got '{v}'")
        return v

    @field_validator('on_resolution_change')
    @classmethod
    def validate_policy(cls, v: str) -> str:
        if v not in RESOLUTION_POLICIES:
            raise ValueError(f"on_resolution_change must be one of {RESOLUTION_POLICIES}, got '{v}'")
        return v


# ============================================================================
# PUBLIC API
# ============================================================================

def load_film_config(path: Union[str, Path]) -> FilmConfigV1:
    """Load and validate film config from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to film.v1.yaml file

    Returns
    -------
    FilmConfigV1
        Validated film configuration

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ConfigError
        If validation fails (with actionable error message)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Film config not found: {path}")

    data = fs.load_yaml(path)
    if not isinstance(data, dict):
        raise ConfigError(f"Film config at {path} must be a mapping, got {type(data).__name__}")
    try:
        return FilmConfigV1(**data)
    except Exception as e:
        raise ConfigError(f"Film config validation failed at {path}: {e}") from e
