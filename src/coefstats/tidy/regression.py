"""Tidy coefficient tables from statsmodels results objects.

Any results object exposing the usual statsmodels attributes
(``params``, ``bse``, ``tvalues``, ``pvalues``) is supported: OLS/WLS,
GLM, discrete choice models, mixed models and so on.  Multi-equation
models such as ``MNLogit`` have two-dimensional ``params``; they are
returned in long format with a ``response`` column so that the term
reconciler can build unique labels.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from scipy import stats

from ..core.errors import UnsupportedModelError
from ..core.models import StatisticKind
from ..utils.logging import get_logger

logger = get_logger(__name__)

REQUIRED_ATTRIBUTES = ("params", "bse")


def _probe(results: Any, name: str) -> Any:
    """Read an optional results attribute; some are lazily computed and
    raise when the model does not define them."""
    try:
        return getattr(results, name)
    except (AttributeError, NotImplementedError, ValueError, np.linalg.LinAlgError):
        return None


def is_regression_results(obj: Any) -> bool:
    return all(hasattr(obj, attr) for attr in REQUIRED_ATTRIBUTES)


def find_statistic(results: Any) -> StatisticKind:
    """Statistic used for the Wald tests of a results object."""
    return StatisticKind.T if bool(_probe(results, "use_t")) else StatisticKind.Z


def _term_names(results: Any, n_params: int) -> List[str]:
    params = results.params
    if isinstance(params, (pd.Series, pd.DataFrame)):
        return [str(name) for name in params.index]
    model = _probe(results, "model")
    names = _probe(model, "exog_names") if model is not None else None
    if names is not None and len(names) == n_params:
        return [str(name) for name in names]
    return [f"x{i}" for i in range(n_params)]


def _critical_value(kind: StatisticKind, conf_level: float, df: Optional[float]) -> float:
    alpha = 1.0 - conf_level
    if kind == StatisticKind.T and df is not None and np.isfinite(df):
        return float(stats.t.ppf(1 - alpha / 2, df))
    return float(stats.norm.ppf(1 - alpha / 2))


def _single_equation(results: Any, conf_level: float, kind: StatisticKind) -> pd.DataFrame:
    estimate = np.asarray(results.params, dtype=float)
    terms = _term_names(results, len(estimate))
    frame: Dict[str, Any] = {
        "term": terms,
        "estimate": estimate,
        "std.error": np.asarray(results.bse, dtype=float),
    }
    statistic = _probe(results, "tvalues")
    if statistic is not None:
        frame["statistic"] = np.asarray(statistic, dtype=float)
    pvalues = _probe(results, "pvalues")
    if pvalues is not None:
        frame["p.value"] = np.asarray(pvalues, dtype=float)

    conf_int = None
    try:
        conf_int = np.asarray(results.conf_int(alpha=1.0 - conf_level), dtype=float)
    except (AttributeError, NotImplementedError, ValueError, TypeError):
        logger.debug("conf_int() unavailable; computing Wald intervals")
    if conf_int is None or conf_int.shape != (len(estimate), 2):
        df = _probe(results, "df_resid")
        crit = _critical_value(kind, conf_level, df)
        conf_int = np.column_stack([estimate - crit * frame["std.error"], estimate + crit * frame["std.error"]])
    frame["conf.low"] = conf_int[:, 0]
    frame["conf.high"] = conf_int[:, 1]

    if kind == StatisticKind.T:
        df_resid = _probe(results, "df_resid")
        if df_resid is not None:
            frame["df.error"] = float(df_resid)
    return pd.DataFrame(frame)


def _multi_equation(results: Any, conf_level: float, kind: StatisticKind) -> pd.DataFrame:
    params = results.params
    if not isinstance(params, pd.DataFrame):
        params = pd.DataFrame(np.asarray(params))
    bse = np.asarray(results.bse, dtype=float)
    tvalues = _probe(results, "tvalues")
    pvalues = _probe(results, "pvalues")
    df = _probe(results, "df_resid")
    crit = _critical_value(kind, conf_level, df)

    pieces = []
    for j, response in enumerate(params.columns):
        estimate = params.iloc[:, j].to_numpy(dtype=float)
        se = bse[:, j]
        piece = pd.DataFrame({
            "term": [str(name) for name in params.index],
            "response": str(response),
            "estimate": estimate,
            "std.error": se,
            "conf.low": estimate - crit * se,
            "conf.high": estimate + crit * se,
        })
        if tvalues is not None:
            piece["statistic"] = np.asarray(tvalues, dtype=float)[:, j]
        if pvalues is not None:
            piece["p.value"] = np.asarray(pvalues, dtype=float)[:, j]
        pieces.append(piece)
    return pd.concat(pieces, ignore_index=True)


def tidy_regression(results: Any, conf_level: float = 0.95) -> pd.DataFrame:
    """Build a tidy coefficient table from a statsmodels results object.

    Args:
        results: Fitted statsmodels results (e.g. ``smf.ols(...).fit()``).
        conf_level: Confidence level of the ``conf.low``/``conf.high``
            columns.

    Returns:
        DataFrame with ``term``, ``estimate``, ``std.error``,
        ``statistic``, ``p.value``, ``conf.low``, ``conf.high`` and, for
        t-based models, ``df.error``.
    """
    if not is_regression_results(results):
        raise UnsupportedModelError(type(results).__name__, "no 'params'/'bse' attributes")
    kind = find_statistic(results)
    try:
        ndim = np.ndim(results.params)
        if ndim == 1:
            tidy_df = _single_equation(results, conf_level, kind)
        elif ndim == 2:
            tidy_df = _multi_equation(results, conf_level, kind)
        else:
            raise UnsupportedModelError(type(results).__name__, f"parameters have {ndim} dimensions")
    except (TypeError, ValueError) as exc:
        raise UnsupportedModelError(type(results).__name__, str(exc)) from exc
    logger.debug(f"Tidied {type(results).__name__} into {len(tidy_df)} rows")
    return tidy_df


def glance_regression(results: Any) -> Optional[pd.DataFrame]:
    """One-row model performance summary, or ``None`` if nothing is available."""
    columns = {
        "aic": "aic",
        "bic": "bic",
        "loglik": "llf",
        "r2": "rsquared",
        "r2.adjusted": "rsquared_adj",
        "df.residual": "df_resid",
        "nobs": "nobs",
    }
    row: Dict[str, float] = {}
    for column, attribute in columns.items():
        value = _probe(results, attribute)
        if value is None:
            continue
        try:
            row[column] = float(value)
        except (TypeError, ValueError):
            continue
    if not row:
        return None
    return pd.DataFrame([row])
