"""Coefficient plots annotated with test statistics, p-values and
meta-analytic summaries."""

from .api import CoefStatsResult, ggcoefstats, make_options, prepare  # noqa: F401
from .core.errors import (  # noqa: F401
    CoefStatsError,
    ConfigurationError,
    DataShapeError,
    DuplicateTermsError,
    MetaAnalysisError,
    UnsupportedModelError,
)
from .core.models import CoefStatsOptions  # noqa: F401

__version__ = "0.1.0"
