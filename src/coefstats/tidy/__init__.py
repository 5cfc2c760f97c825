"""Extraction of tidy result tables from fitted models.

Regression-style statsmodels results are handled by
:mod:`coefstats.tidy.regression`, ANOVA tables by
:mod:`coefstats.tidy.anova`.  :func:`tidy_model` and
:func:`glance_model` dispatch on the :class:`ModelInput` kind.
"""

from typing import Optional

import pandas as pd

from ..core.models import EffectSizeKind, ModelInput, StatisticKind
from .anova import is_anova_table, tidy_anova  # noqa: F401
from .regression import (  # noqa: F401
    find_statistic,
    glance_regression,
    is_regression_results,
    tidy_regression,
)


def tidy_model(
    source: ModelInput,
    conf_level: float = 0.95,
    effsize: EffectSizeKind = EffectSizeKind.ETA,
) -> pd.DataFrame:
    """Tidy coefficient table for a model input."""
    if source.kind == "anova":
        return tidy_anova(source.model, effsize=effsize, conf_level=conf_level)
    return tidy_regression(source.model, conf_level=conf_level)


def model_statistic(source: ModelInput) -> StatisticKind:
    """Statistic backing the p-values of a model input."""
    if source.kind == "anova":
        return StatisticKind.F
    return find_statistic(source.model)


def glance_model(source: ModelInput) -> Optional[pd.DataFrame]:
    """Model performance summary; ANOVA tables have none."""
    if source.kind == "anova":
        return None
    return glance_regression(source.model)
