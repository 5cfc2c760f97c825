"""Tidy ANOVA tables into effect-size rows.

Two shapes are understood:

* the ``DataFrame`` returned by ``statsmodels.stats.anova.anova_lm``
  (columns ``df``, ``sum_sq``, ``F``, ``PR(>F)`` and a ``Residual`` row);
* ``AnovaResults`` from ``statsmodels.stats.anova.AnovaRM`` whose
  ``anova_table`` has ``F Value``, ``Num DF``, ``Den DF`` and ``Pr > F``.

Each effect becomes one row whose ``estimate`` is the partial eta-squared
or partial omega-squared computed from its F ratio and degrees of
freedom.
"""

from __future__ import annotations

from typing import Any, Tuple

import numpy as np
import pandas as pd
from scipy import optimize, stats

from ..core.errors import UnsupportedModelError
from ..core.models import EffectSizeKind
from ..utils.logging import get_logger

logger = get_logger(__name__)

ANOVA_LM_COLUMNS = {"df", "sum_sq", "F", "PR(>F)"}
ANOVA_RM_COLUMNS = {"F Value", "Num DF", "Den DF", "Pr > F"}
RESIDUAL_LABELS = {"residual", "residuals"}


def is_anova_table(obj: Any) -> bool:
    """True for ``anova_lm`` output or an ``AnovaRM`` results object."""
    if isinstance(obj, pd.DataFrame):
        return ANOVA_LM_COLUMNS.issubset(obj.columns)
    table = getattr(obj, "anova_table", None)
    return isinstance(table, pd.DataFrame) and ANOVA_RM_COLUMNS.issubset(table.columns)


def partial_eta_squared(f_value, df1, df2):
    f_value = np.asarray(f_value, dtype=float)
    return f_value * df1 / (f_value * df1 + df2)


def partial_omega_squared(f_value, df1, df2):
    f_value = np.asarray(f_value, dtype=float)
    omega = (f_value - 1) * df1 / (f_value * df1 + df2 + 1)
    return np.clip(omega, 0.0, None)


def _ncp_bound(f_value: float, df1: float, df2: float, target: float) -> float:
    """Noncentrality at which the F cdf evaluated at ``f_value`` equals ``target``."""

    def gap(ncp: float) -> float:
        if ncp <= 0:
            return stats.f.cdf(f_value, df1, df2) - target
        return stats.ncf.cdf(f_value, df1, df2, ncp) - target

    if gap(0.0) <= 0:
        return 0.0
    upper = max(10.0, f_value * df1 * 4)
    while gap(upper) > 0:
        upper *= 2
    return float(optimize.brentq(gap, 0.0, upper))


def eta_squared_interval(f_value: float, df1: float, df2: float, conf_level: float) -> Tuple[float, float]:
    """Confidence interval for partial eta-squared by inverting the noncentral F."""
    if not np.isfinite(f_value):
        return (np.nan, np.nan)
    alpha = 1.0 - conf_level
    ncp_low = _ncp_bound(f_value, df1, df2, 1 - alpha / 2)
    ncp_high = _ncp_bound(f_value, df1, df2, alpha / 2)
    return (ncp_low / (ncp_low + df2), ncp_high / (ncp_high + df2))


def _anova_lm_rows(table: pd.DataFrame) -> pd.DataFrame:
    labels = [str(idx) for idx in table.index]
    residual = [label.lower() in RESIDUAL_LABELS for label in labels]
    if not any(residual):
        raise UnsupportedModelError("anova_lm table", "no residual row to take error degrees of freedom from")
    df2 = float(table["df"].to_numpy()[residual.index(True)])
    effects = table.loc[[not flag for flag in residual]]
    return pd.DataFrame({
        "term": [str(idx) for idx in effects.index],
        "statistic": effects["F"].to_numpy(dtype=float),
        "df1": effects["df"].to_numpy(dtype=float),
        "df2": df2,
        "p.value": effects["PR(>F)"].to_numpy(dtype=float),
    })


def _anova_rm_rows(results: Any) -> pd.DataFrame:
    table = results.anova_table
    return pd.DataFrame({
        "term": [str(idx) for idx in table.index],
        "statistic": table["F Value"].to_numpy(dtype=float),
        "df1": table["Num DF"].to_numpy(dtype=float),
        "df2": table["Den DF"].to_numpy(dtype=float),
        "p.value": table["Pr > F"].to_numpy(dtype=float),
    })


def tidy_anova(
    model: Any,
    effsize: EffectSizeKind = EffectSizeKind.ETA,
    conf_level: float = 0.95,
) -> pd.DataFrame:
    """Turn an ANOVA table into one row per effect.

    Rows whose F statistic is missing (e.g. strata without tests) are
    dropped.  Confidence intervals are only available for partial
    eta-squared; omega-squared tables carry no interval columns.
    """
    if isinstance(model, pd.DataFrame) and ANOVA_LM_COLUMNS.issubset(model.columns):
        rows = _anova_lm_rows(model)
    elif is_anova_table(model):
        rows = _anova_rm_rows(model)
    else:
        raise UnsupportedModelError(type(model).__name__, "not an ANOVA table")

    rows = rows.loc[rows["statistic"].notna()].reset_index(drop=True)
    effsize = EffectSizeKind(effsize)
    if effsize == EffectSizeKind.ETA:
        rows["estimate"] = partial_eta_squared(rows["statistic"], rows["df1"], rows["df2"])
        bounds = [
            eta_squared_interval(f, d1, d2, conf_level)
            for f, d1, d2 in zip(rows["statistic"], rows["df1"], rows["df2"])
        ]
        rows["conf.low"] = [low for low, _ in bounds]
        rows["conf.high"] = [high for _, high in bounds]
    else:
        rows["estimate"] = partial_omega_squared(rows["statistic"], rows["df1"], rows["df2"])
    rows["effsize"] = effsize.value
    logger.debug(f"Tidied ANOVA table into {len(rows)} effects ({effsize.value})")
    return rows
