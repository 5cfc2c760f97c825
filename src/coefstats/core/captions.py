"""Subtitle and caption text for coefficient plots.

New text is always appended to what the caller already supplied, on a
line of its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pandas as pd

from ..meta import MetaAnalysisResult, run_meta_analysis
from ..utils.logging import get_logger
from .labels import format_p_value, specify_decimal
from .models import CoefStatsOptions, MetaType

logger = get_logger(__name__)


@dataclass
class Annotations:
    subtitle: Optional[str] = None
    caption: Optional[str] = None


def join_text(existing: Optional[str], addition: Optional[str]) -> Optional[str]:
    """Append ``addition`` below ``existing``; either may be missing."""
    if not addition:
        return existing
    if not existing:
        return addition
    return f"{existing}\n{addition}"


def _interval_name(result: MetaAnalysisResult) -> str:
    prefix = "CrI" if result.method == "bayes" else "CI"
    return f"{prefix}{result.conf_level * 100:g}%"


def meta_subtitle(result: MetaAnalysisResult, k: int = 2) -> str:
    """One-line summary of the pooled effect."""
    interval = f"{_interval_name(result)} [{specify_decimal(result.conf_low, k)}, {specify_decimal(result.conf_high, k)}]"
    if result.method == "bayes":
        return (
            f"Summary effect: δ = {specify_decimal(result.estimate, k)}, {interval}, "
            f"log_e(BF01) = {specify_decimal(result.log_bf01, k)}"
        )
    return (
        f"Summary effect: β = {specify_decimal(result.estimate, k)}, {interval}, "
        f"z = {specify_decimal(result.statistic, k)}, {format_p_value(result.p_value, k)}"
    )


def heterogeneity_caption(result: MetaAnalysisResult, k: int = 2) -> Optional[str]:
    het = result.heterogeneity
    if het is None:
        return None
    return (
        f"Heterogeneity: Q({het.q_df}) = {specify_decimal(het.q, k)}, {format_p_value(het.q_pvalue, k)}, "
        f"τ² = {specify_decimal(het.tau_squared, k)}, I² = {specify_decimal(het.i_squared, k)}%"
    )


def bayes_caption(result: MetaAnalysisResult, k: int = 2) -> str:
    return (
        f"log_e(BF01) = {specify_decimal(result.log_bf01, k)}, δ = {specify_decimal(result.estimate, k)}, "
        f"{_interval_name(result)} [{specify_decimal(result.conf_low, k)}, {specify_decimal(result.conf_high, k)}]"
    )


def glance_caption(glance_df: Optional[pd.DataFrame]) -> Optional[str]:
    """``AIC = …, BIC = …`` when the model summary has both."""
    if glance_df is None or glance_df.empty or not {"aic", "bic"}.issubset(glance_df.columns):
        return None
    aic, bic = glance_df["aic"].iloc[0], glance_df["bic"].iloc[0]
    if pd.isna(aic) or pd.isna(bic):
        return None
    return f"AIC = {specify_decimal(aic, 0)}, BIC = {specify_decimal(bic, 0)}"


def compose_annotations(
    tidy_df: pd.DataFrame,
    options: CoefStatsOptions,
    glance_df: Optional[pd.DataFrame] = None,
    from_model: bool = False,
) -> Annotations:
    """Build the subtitle and caption for one plot.

    Models get model diagnostics in the caption and never a
    meta-analysis.  Tables get the meta-analysis summary when
    ``meta_analytic_effect`` is set; its errors propagate.
    """
    annotations = Annotations(subtitle=options.subtitle, caption=options.caption)
    k = options.k

    if from_model:
        annotations.caption = join_text(annotations.caption, glance_caption(glance_df))
        if options.meta_analytic_effect:
            logger.info("Meta-analysis is only available for table input; skipping")
        return annotations

    if not options.meta_analytic_effect:
        return annotations

    result = run_meta_analysis(tidy_df, meta_type=options.meta_type, conf_level=options.conf_level)
    annotations.subtitle = join_text(annotations.subtitle, meta_subtitle(result, k))

    if options.meta_type == MetaType.PARAMETRIC:
        if options.bf_message:
            bayes = run_meta_analysis(tidy_df, meta_type=MetaType.BAYES, conf_level=options.conf_level)
            annotations.caption = join_text(annotations.caption, bayes_caption(bayes, k))
        annotations.caption = join_text(annotations.caption, heterogeneity_caption(result, k))
    return annotations
