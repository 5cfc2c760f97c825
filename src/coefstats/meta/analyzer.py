"""Random-effects meta-analysis of coefficient tables.

This module defines the :class:`MetaAnalyzer` class for pooling the
estimates of a tidy result table, treating each term as one study.
Fixed and random effects models are supported, the latter with the
DerSimonian–Laird estimator for between-study variance, together with
Cochran's Q heterogeneity test.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd
from scipy import stats

from ..core.errors import DataShapeError, MetaAnalysisError
from ..utils.logging import get_logger

logger = get_logger(__name__)

MIN_STUDIES = 2


@dataclass
class EffectSize:
    """Representation of an effect size with its standard error."""

    study_id: str
    effect: float
    se: float

    @property
    def weight(self) -> float:
        return 1.0 / (self.se ** 2)


@dataclass
class Heterogeneity:
    """Cochran's Q test and derived heterogeneity measures."""

    q: float
    q_df: int
    q_pvalue: float
    i_squared: float
    tau_squared: float
    interpretation: str


@dataclass
class MetaAnalysisResult:
    """Summary of a pooled effect.

    Frequentist variants fill ``statistic`` (z) and ``p_value``; the
    Bayesian variant fills ``log_bf01`` and reports a credible interval
    in ``conf_low``/``conf_high``.
    """

    method: str
    estimate: float
    conf_low: float
    conf_high: float
    conf_level: float
    n_studies: int
    std_error: Optional[float] = None
    statistic: Optional[float] = None
    p_value: Optional[float] = None
    tau: Optional[float] = None
    heterogeneity: Optional[Heterogeneity] = None
    log_bf01: Optional[float] = None


def effect_sizes_from_table(tidy_df: pd.DataFrame) -> List[EffectSize]:
    """Build effect sizes from the ``estimate`` and ``std.error`` columns.

    Raises:
        DataShapeError: either column is missing.
        MetaAnalysisError: fewer than two usable rows, or a standard
            error that is not strictly positive.
    """
    missing = [col for col in ("estimate", "std.error") if col not in tidy_df.columns]
    if missing:
        raise DataShapeError(
            f"Meta-analysis needs columns 'estimate' and 'std.error'; missing: {', '.join(missing)}"
        )
    terms = tidy_df["term"] if "term" in tidy_df.columns else pd.Series(range(len(tidy_df)))
    effect_sizes = []
    for study_id, effect, se in zip(terms, tidy_df["estimate"], tidy_df["std.error"]):
        if pd.isna(effect) or pd.isna(se):
            continue
        if float(se) <= 0:
            raise MetaAnalysisError(f"Standard error of '{study_id}' must be positive, got {se}")
        effect_sizes.append(EffectSize(study_id=str(study_id), effect=float(effect), se=float(se)))
    if len(effect_sizes) < MIN_STUDIES:
        raise MetaAnalysisError(
            f"Meta-analysis needs at least {MIN_STUDIES} estimates with standard errors, got {len(effect_sizes)}"
        )
    return effect_sizes


def effect_arrays(effect_sizes: List[EffectSize]):
    effects = np.array([es.effect for es in effect_sizes], dtype=float)
    ses = np.array([es.se for es in effect_sizes], dtype=float)
    return effects, ses


class MetaAnalyzer:
    """Perform meta-analysis on a set of effect sizes.

    The analyser implements both fixed effect and random effects
    models using the DerSimonian–Laird estimator for between-study
    variance.  It also provides heterogeneity assessment.
    """

    def __init__(self, conf_level: float = 0.95) -> None:
        self.conf_level = conf_level

    def compute_pooled_effect(
        self,
        effect_sizes: List[EffectSize],
        method: str = "random",
    ) -> MetaAnalysisResult:
        """Compute the pooled effect size across a set of studies.

        Args:
            effect_sizes: List of individual study effect sizes.
            method: Either ``'fixed'`` or ``'random'`` to select the
                pooling approach.

        Returns:
            The pooled estimate, its standard error, confidence
            interval, z-score and p-value, along with heterogeneity
            statistics.
        """
        if not effect_sizes:
            raise MetaAnalysisError("No effect sizes provided")
        if method not in ("fixed", "random"):
            raise MetaAnalysisError(f"Unknown pooling method '{method}'")
        effects, ses = effect_arrays(effect_sizes)
        weights = 1.0 / (ses ** 2)
        tau_squared = 0.0
        if method == "random":
            tau_squared = self._estimate_tau_squared(effects, ses, weights)
            weights = 1.0 / (ses ** 2 + tau_squared)
        pooled_effect = np.sum(weights * effects) / np.sum(weights)
        pooled_se = np.sqrt(1.0 / np.sum(weights))
        z_crit = stats.norm.ppf(1 - (1 - self.conf_level) / 2)
        z_score = pooled_effect / pooled_se if pooled_se > 0 else 0.0
        p_value = 2 * stats.norm.sf(abs(z_score))
        result = MetaAnalysisResult(
            method=method,
            estimate=float(pooled_effect),
            std_error=float(pooled_se),
            conf_low=float(pooled_effect - z_crit * pooled_se),
            conf_high=float(pooled_effect + z_crit * pooled_se),
            conf_level=self.conf_level,
            statistic=float(z_score),
            p_value=float(p_value),
            tau=float(np.sqrt(tau_squared)),
            n_studies=len(effect_sizes),
            heterogeneity=self.assess_heterogeneity(effect_sizes),
        )
        logger.debug(f"Pooled {result.n_studies} estimates ({method}): {result.estimate:.4f}")
        return result

    def _estimate_tau_squared(
        self,
        effects: np.ndarray,
        ses: np.ndarray,
        weights: np.ndarray,
    ) -> float:
        """Estimate between-study variance (tau²) using DerSimonian–Laird."""
        k = len(effects)
        pooled = np.sum(weights * effects) / np.sum(weights)
        Q = np.sum(weights * (effects - pooled) ** 2)
        df = k - 1
        c = np.sum(weights) - np.sum(weights ** 2) / np.sum(weights)
        tau_squared = max(0.0, (Q - df) / c) if c > 0 else 0.0
        return float(tau_squared)

    def assess_heterogeneity(self, effect_sizes: List[EffectSize]) -> Heterogeneity:
        """Compute heterogeneity statistics (Q, I², tau²)."""
        effects, ses = effect_arrays(effect_sizes)
        weights = 1.0 / (ses ** 2)
        k = len(effects)
        pooled = np.sum(weights * effects) / np.sum(weights)
        Q = np.sum(weights * (effects - pooled) ** 2)
        df = k - 1
        Q_pvalue = stats.chi2.sf(Q, df) if df > 0 else 1.0
        # band edges are exact; drop float noise before classifying
        I_squared = round(max(0.0, 100.0 * (Q - df) / Q), 10) if Q > 0 else 0.0
        tau_squared = self._estimate_tau_squared(effects, ses, weights)
        if I_squared < 25:
            interpretation = "low heterogeneity"
        elif I_squared < 50:
            interpretation = "moderate heterogeneity"
        elif I_squared < 75:
            interpretation = "substantial heterogeneity"
        else:
            interpretation = "considerable heterogeneity"
        return Heterogeneity(
            q=float(Q),
            q_df=int(df),
            q_pvalue=float(Q_pvalue),
            i_squared=float(I_squared),
            tau_squared=float(tau_squared),
            interpretation=interpretation,
        )
