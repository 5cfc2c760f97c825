"""Entry point: dot-and-whisker plots annotated with model statistics.

:func:`ggcoefstats` accepts a fitted statsmodels model, an ANOVA table
or a tidy result table and returns a plot, the cleaned table, the model
summary, or the subtitle/caption text, depending on ``output``.

Example:
    >>> import statsmodels.formula.api as smf
    >>> fit = smf.ols("mpg ~ cyl * am", data=mtcars).fit()
    >>> fig = ggcoefstats(fit)
    >>> tidy = ggcoefstats(fit, output="tidy", sort="descending")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

import pandas as pd
from matplotlib.figure import Figure
from pydantic import ValidationError

from .core.captions import compose_annotations
from .core.errors import ConfigurationError, DuplicateTermsError
from .core.inputs import check_table_options, normalize_input
from .core.labels import add_labels
from .core.models import CoefStatsOptions, ModelInput, OutputMode, StatisticKind
from .core.reconcile import reconcile, sort_terms
from .plot import build_coefplot
from .tidy import glance_model, model_statistic, tidy_model
from .utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CoefStatsResult:
    """Everything computed for one call, before an output is picked."""

    table: pd.DataFrame
    glance: Optional[pd.DataFrame]
    options: CoefStatsOptions
    statistic: Optional[StatisticKind]
    conf_int: bool
    stats_labels: bool
    xlab: Optional[str]
    subtitle: Optional[str] = None
    caption: Optional[str] = None

    def plot(self) -> Figure:
        return build_coefplot(
            self.table,
            self.options,
            conf_int=self.conf_int,
            stats_labels=self.stats_labels,
            xlab=self.xlab,
            subtitle=self.subtitle,
            caption=self.caption,
        )


def make_options(options: Optional[CoefStatsOptions] = None, **kwargs: Any) -> CoefStatsOptions:
    """Build the option bundle, reporting validation problems as
    :class:`ConfigurationError`."""
    try:
        if options is None:
            return CoefStatsOptions(**kwargs)
        if kwargs:
            return CoefStatsOptions(**{**options.model_dump(), **kwargs})
        return options
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc


def prepare(x: Any, options: CoefStatsOptions) -> CoefStatsResult:
    """Run the pipeline up to, but not including, rendering.

    Raises:
        ConfigurationError: options are inconsistent with the input.
        UnsupportedModelError: ``x`` cannot be tidied.
        DataShapeError: the tidy table has no ``estimate`` column.
        DuplicateTermsError: term labels cannot be made unique.
        MetaAnalysisError: the requested meta-analysis failed.
    """
    source = normalize_input(x)
    xlab = options.xlab
    glance_df = None
    if isinstance(source, ModelInput):
        tidy_df = tidy_model(source, conf_level=options.conf_level, effsize=options.effsize)
        statistic: Optional[StatisticKind] = model_statistic(source)
        glance_df = glance_model(source)
        if source.kind == "anova" and xlab is None:
            xlab = f"partial {options.effsize.value}-squared"
    else:
        options = check_table_options(source, options)
        tidy_df = source.table
        statistic = options.statistic

    reconciled = reconcile(
        tidy_df,
        stats_labels=options.stats_labels,
        conf_int=options.conf_int,
        exclude_intercept=options.exclude_intercept,
    )
    table = reconciled.table
    if reconciled.stats_labels:
        table = add_labels(
            table,
            statistic,
            k=options.k,
            effsize=options.effsize,
            only_significant=options.only_significant,
        )

    annotations = compose_annotations(
        table, options, glance_df=glance_df, from_model=isinstance(source, ModelInput)
    )
    table = sort_terms(table, options.sort)
    logger.debug(
        "Prepared coefficient table",
        extra={"context": {
            "n_terms": len(table),
            "source": "model" if isinstance(source, ModelInput) else "table",
            "statistic": statistic.value if statistic is not None else None,
            "labels": reconciled.stats_labels,
        }},
    )
    return CoefStatsResult(
        table=table,
        glance=glance_df,
        options=options,
        statistic=statistic,
        conf_int=reconciled.conf_int,
        stats_labels=reconciled.stats_labels,
        xlab=xlab,
        subtitle=annotations.subtitle,
        caption=annotations.caption,
    )


def ggcoefstats(
    x: Any,
    output: Optional[Union[str, OutputMode]] = None,
    options: Optional[CoefStatsOptions] = None,
    **kwargs: Any,
) -> Union[Figure, pd.DataFrame, str, None]:
    """Dot-and-whisker plot of regression estimates with statistical labels.

    Args:
        x: A fitted statsmodels results object, an ``anova_lm`` table or
            ``AnovaRM`` result, or a tidy table (DataFrame or records)
            with at least ``term`` and ``estimate`` columns.
        output: ``"plot"`` (matplotlib figure), ``"tidy"`` (cleaned
            table), ``"glance"`` (model summary table, ``None`` for
            tables), ``"subtitle"`` or ``"caption"`` (text).
        options: A prepared :class:`CoefStatsOptions`; keyword arguments
            override its fields.
        **kwargs: Any :class:`CoefStatsOptions` field, e.g.
            ``statistic="t"``, ``sort="ascending"``, ``k=3``,
            ``meta_analytic_effect=True``.

    Returns:
        The requested output.  When term labels cannot be made unique
        and ``on_duplicate="return"`` (the default), the partially
        cleaned table is returned instead and a warning is logged.
    """
    if output is not None:
        kwargs["output"] = output
    options = make_options(options, **kwargs)
    try:
        result = prepare(x, options)
    except DuplicateTermsError as exc:
        if options.on_duplicate == "raise":
            raise
        logger.warning(f"{exc}; returning the intermediate table")
        return exc.table

    if options.output == OutputMode.TIDY:
        return result.table
    if options.output == OutputMode.GLANCE:
        return result.glance
    if options.output == OutputMode.SUBTITLE:
        return result.subtitle
    if options.output == OutputMode.CAPTION:
        return result.caption
    return result.plot()
