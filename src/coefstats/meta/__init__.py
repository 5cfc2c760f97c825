"""Meta-analysis utilities.

This package pools the estimates of a tidy result table with a
random-effects model.  Three flavours are available: a parametric
DerSimonian–Laird model with heterogeneity statistics, a robust model
with t-distributed study effects, and a Bayesian model reporting a
Bayes factor.
"""

import pandas as pd

from ..core.models import MetaType
from .analyzer import (  # noqa: F401
    EffectSize,
    Heterogeneity,
    MetaAnalysisResult,
    MetaAnalyzer,
    effect_sizes_from_table,
)
from .bayes import BayesianMetaAnalyzer  # noqa: F401
from .robust import RobustMetaAnalyzer  # noqa: F401


def run_meta_analysis(
    tidy_df: pd.DataFrame,
    meta_type: MetaType = MetaType.PARAMETRIC,
    conf_level: float = 0.95,
) -> MetaAnalysisResult:
    """Pool the ``estimate``/``std.error`` columns of ``tidy_df``."""
    effect_sizes = effect_sizes_from_table(tidy_df)
    meta_type = MetaType.parse(meta_type)
    if meta_type == MetaType.ROBUST:
        return RobustMetaAnalyzer(conf_level=conf_level).compute_pooled_effect(effect_sizes)
    if meta_type == MetaType.BAYES:
        return BayesianMetaAnalyzer(conf_level=conf_level).compute_pooled_effect(effect_sizes)
    return MetaAnalyzer(conf_level=conf_level).compute_pooled_effect(effect_sizes, method="random")
