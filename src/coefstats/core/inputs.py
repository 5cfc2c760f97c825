"""Classify the object handed to :func:`coefstats.ggcoefstats`."""

from __future__ import annotations

from typing import Any, Mapping

import pandas as pd

from ..tidy import is_anova_table, is_regression_results
from ..utils.logging import get_logger
from .errors import ConfigurationError, UnsupportedModelError
from .models import CoefStatsOptions, ModelInput, NormalizedInput, TableInput

logger = get_logger(__name__)


def normalize_input(x: Any) -> NormalizedInput:
    """Wrap ``x`` as a :class:`ModelInput` or a :class:`TableInput`.

    DataFrames are tables unless they are ``anova_lm`` output.  Mappings
    and lists of records are converted to DataFrames.  Objects with the
    statsmodels results interface are models.

    Raises:
        UnsupportedModelError: ``x`` is none of the above.
    """
    if is_anova_table(x):
        return ModelInput(model=x, kind="anova")
    if isinstance(x, pd.DataFrame):
        return TableInput(table=x.copy())
    if isinstance(x, Mapping) or (isinstance(x, list) and all(isinstance(r, Mapping) for r in x)):
        try:
            return TableInput(table=pd.DataFrame(x))
        except ValueError as exc:
            raise UnsupportedModelError(type(x).__name__, f"cannot build a table: {exc}") from exc
    if is_regression_results(x):
        return ModelInput(model=x, kind="regression")
    raise UnsupportedModelError(type(x).__name__)


def check_table_options(source: TableInput, options: CoefStatsOptions) -> CoefStatsOptions:
    """Validate options that only matter for caller-supplied tables.

    A table carries no record of which test produced its p-values, so the
    statistic kind has to be given when a plot with labels is requested.
    Otherwise labels are switched off.
    """
    if options.statistic is not None:
        return options
    if options.wants_labels:
        raise ConfigurationError(
            "The argument 'statistic' must be specified for a data frame input "
            "when statistical labels are requested (use one of t, f, z, chi)"
        )
    if options.stats_labels:
        logger.info("No 'statistic' given for table input; skipping statistical labels")
    return options.model_copy(update={"stats_labels": False})
