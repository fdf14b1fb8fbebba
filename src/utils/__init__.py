"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Config validation (validators)
    - Index wrapping, clamping, finite checks (compute)
    - Color science on arrays (color)
    - Geometry operations (geometry)
    - Atomic I/O, YAML, image files (fs)
    - Tensor interop (torch_utils)
    - Unified logging (logging_config)

No module in utils/ may import from upper layers (raster, film).

Convenience imports:
    from src.utils import fs, compute, color, validators
    from src.utils.logging_config import setup_logging, get_logger

torch_utils is imported lazily by its callers so that torch stays off the
import path of code that never converts to tensors.
"""

from . import color
from . import compute
from . import fs
from . import geometry
from . import logging_config
from . import validators

from .logging_config import get_logger, push_context, setup_logging

__all__ = [
    # Modules
    'color',
    'compute',
    'fs',
    'geometry',
    'logging_config',
    'validators',
    # Direct exports
    'setup_logging',
    'get_logger',
    'push_context',
]
