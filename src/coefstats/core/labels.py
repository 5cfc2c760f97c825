"""Per-term label text for coefficient plots."""

from __future__ import annotations

from typing import Any, Optional

import numpy as np
import pandas as pd

from ..config.settings import settings
from .models import EffectSizeKind, StatisticKind

EFFSIZE_SYMBOLS = {
    EffectSizeKind.ETA.value: "η²p",
    EffectSizeKind.OMEGA.value: "ω²p",
}


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def specify_decimal(x: Any, k: int = 2) -> str:
    """Format ``x`` with exactly ``k`` decimals; ``"NA"`` for missing values."""
    if _is_missing(x):
        return "NA"
    return f"{float(x):.{k}f}"


def format_p_value(p: Any, k: int = 2) -> str:
    """``"p < 0.001"`` for tiny values, ``"p = <p>"`` otherwise."""
    if _is_missing(p):
        return "p = NA"
    if float(p) < 0.001:
        return "p < 0.001"
    return f"p = {specify_decimal(p, k)}"


def format_df(value: Any, k: int = 2) -> str:
    """Degrees of freedom: integers print without decimals."""
    value = float(value)
    if np.isfinite(value) and value.is_integer():
        return str(int(value))
    return specify_decimal(value, k)


def _first_present(row: pd.Series, columns: tuple) -> Optional[Any]:
    for column in columns:
        if column in row.index and not _is_missing(row[column]):
            return row[column]
    return None


def make_label(
    row: pd.Series,
    statistic: StatisticKind,
    k: int = 2,
    effsize: EffectSizeKind = EffectSizeKind.ETA,
) -> str:
    """Label for one table row, or ``""`` if a required value is missing."""
    required = ("estimate", "statistic", "p.value")
    if any(col not in row.index or _is_missing(row[col]) for col in required):
        return ""

    estimate = specify_decimal(row["estimate"], k)
    value = specify_decimal(row["statistic"], k)
    p_text = format_p_value(row["p.value"], k)

    if statistic == StatisticKind.F:
        df1 = _first_present(row, ("df1", "df"))
        df2 = _first_present(row, ("df2", "df.error"))
        kind = row["effsize"] if "effsize" in row.index and not _is_missing(row["effsize"]) else effsize
        symbol = EFFSIZE_SYMBOLS.get(EffectSizeKind(kind).value)
        if df1 is not None and df2 is not None:
            return f"F({format_df(df1, k)}, {format_df(df2, k)}) = {value}, {p_text}, {symbol} = {estimate}"
        return f"F = {value}, {p_text}, {symbol} = {estimate}"

    if statistic == StatisticKind.Z:
        return f"β = {estimate}, z = {value}, {p_text}"

    df = _first_present(row, ("df.error", "df"))
    df_text = f"({format_df(df, k)})" if df is not None else ""
    return f"β = {estimate}, {statistic.symbol}{df_text} = {value}, {p_text}"


def add_labels(
    tidy_df: pd.DataFrame,
    statistic: StatisticKind,
    k: int = 2,
    effsize: EffectSizeKind = EffectSizeKind.ETA,
    only_significant: bool = False,
    threshold: Optional[float] = None,
) -> pd.DataFrame:
    """Add a ``label`` column to ``tidy_df``.

    With ``only_significant`` every row whose p-value is at or above
    ``threshold`` (default from settings, 0.05) gets an empty label.
    """
    statistic = StatisticKind.parse(statistic)
    threshold = settings.significance_threshold if threshold is None else threshold
    tidy_df = tidy_df.copy()
    labels = [make_label(row, statistic, k=k, effsize=effsize) for _, row in tidy_df.iterrows()]
    tidy_df["label"] = labels
    if only_significant and "p.value" in tidy_df.columns:
        p_values = pd.to_numeric(tidy_df["p.value"], errors="coerce")
        tidy_df.loc[~(p_values < threshold), "label"] = ""
    return tidy_df
