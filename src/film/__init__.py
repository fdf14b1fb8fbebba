"""Film layer: reconstruction filters and filtered sample accumulation.

Modules:
    - filters: Filter variants, create_filter(), 16×16 lookup table
    - film: Film accumulator resolving samples into a PixelBuffer
    - spectral: SpectralCurve → XYZ via the CIE 1931 matching functions

Depends on src.raster and src.utils.
"""

from .film import Film, FilmPixel, ResolutionChangedError
from .filters import (
    FILTERS,
    BoxFilter,
    CatmullRomFilter,
    Filter,
    GaussianFilter,
    LanczosSincFilter,
    MitchellFilter,
    TriangleFilter,
    build_filter_table,
    create_filter,
)
from .spectral import ConstantSpectralCurve, SampledSpectralCurve, SpectralCurve

__all__ = [
    'BoxFilter',
    'CatmullRomFilter',
    'ConstantSpectralCurve',
    'FILTERS',
    'Film',
    'FilmPixel',
    'Filter',
    'GaussianFilter',
    'LanczosSincFilter',
    'MitchellFilter',
    'ResolutionChangedError',
    'SampledSpectralCurve',
    'SpectralCurve',
    'TriangleFilter',
    'build_filter_table',
    'create_filter',
]
