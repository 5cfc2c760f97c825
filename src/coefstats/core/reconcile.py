"""Column reconciliation for tidy result tables.

The functions here take a tidy table, as produced by the caller or by
:mod:`coefstats.tidy`, to the shape the label formatter and renderer
expect: an ``estimate`` column, unique ``term`` labels, confidence
interval columns (possibly all null) and optionally no intercept rows.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import numpy as np
import pandas as pd

from ..utils.logging import get_logger
from .errors import DataShapeError, DuplicateTermsError
from .models import SortOrder

logger = get_logger(__name__)

GROUPING_PATTERN = re.compile(r"term|variable|parameter|method|curve|response|component|contrast", re.IGNORECASE)
COMPLETENESS_COLUMNS = ("estimate", "statistic", "std.error", "p.value")
INTERCEPT_PATTERN = re.compile(r"intercept", re.IGNORECASE)
INTERCEPT_NAMES = {"const"}


@dataclass
class ReconciledTable:
    """A cleaned table plus the feature switches that survived cleaning."""

    table: pd.DataFrame
    conf_int: bool
    stats_labels: bool


def require_estimate(tidy_df: pd.DataFrame) -> None:
    if tidy_df is None or "estimate" not in tidy_df.columns:
        raise DataShapeError(
            "The tidy data frame must contain a column called 'estimate'. "
            "Check the tidy output using output='tidy'."
        )


def drop_incomplete_rows(tidy_df: pd.DataFrame) -> pd.DataFrame:
    """Remove rows with nulls in any of the estimate/statistic/SE/p columns."""
    present = [col for col in COMPLETENESS_COLUMNS if col in tidy_df.columns]
    before = len(tidy_df)
    tidy_df = tidy_df.dropna(subset=present).reset_index(drop=True)
    if len(tidy_df) < before:
        logger.info(f"Dropped {before - len(tidy_df)} rows with missing {', '.join(present)}")
    return tidy_df


def ensure_term_column(tidy_df: pd.DataFrame) -> pd.DataFrame:
    if "term" not in tidy_df.columns:
        tidy_df = tidy_df.copy()
        tidy_df["term"] = [f"term_{i}" for i in range(1, len(tidy_df) + 1)]
    return tidy_df


def _duplicated_terms(tidy_df: pd.DataFrame) -> list:
    terms = tidy_df["term"].astype(str)
    return sorted(terms[terms.duplicated()].unique().tolist())


def unite_grouping_columns(tidy_df: pd.DataFrame) -> pd.DataFrame:
    """Join every grouping-like column into a single ``term`` column.

    Columns are joined with ``_`` in the order they appear in the table
    and removed afterwards; the new ``term`` takes the position of the
    first of them.
    """
    grouping = [col for col in tidy_df.columns if GROUPING_PATTERN.search(str(col))]
    if len(grouping) < 2:
        return tidy_df
    parts = [tidy_df[col].astype(object).where(tidy_df[col].notna(), "NA").astype(str) for col in grouping]
    united = parts[0].str.cat(parts[1:], sep="_")
    position = list(tidy_df.columns).index(grouping[0])
    tidy_df = tidy_df.drop(columns=grouping)
    tidy_df.insert(position, "term", united.to_numpy())
    return tidy_df


def resolve_duplicate_terms(tidy_df: pd.DataFrame) -> pd.DataFrame:
    """Make term labels unique or raise :class:`DuplicateTermsError`."""
    if not _duplicated_terms(tidy_df):
        return tidy_df
    tidy_df = unite_grouping_columns(tidy_df)
    duplicates = _duplicated_terms(tidy_df)
    if duplicates:
        raise DuplicateTermsError(tidy_df, duplicates)
    return tidy_df


def fill_conf_int(tidy_df: pd.DataFrame) -> tuple:
    """Add null interval columns when the table has none.

    Returns:
        The table and whether intervals can be displayed.
    """
    if "conf.low" in tidy_df.columns and "conf.high" in tidy_df.columns:
        return tidy_df, True
    tidy_df = tidy_df.copy()
    tidy_df["conf.low"] = np.nan
    tidy_df["conf.high"] = np.nan
    logger.info("No confidence interval columns found; showing point estimates only")
    return tidy_df, False


def drop_intercept(tidy_df: pd.DataFrame) -> pd.DataFrame:
    terms = tidy_df["term"].astype(str)
    is_intercept = terms.str.contains(INTERCEPT_PATTERN) | terms.isin(INTERCEPT_NAMES)
    return tidy_df.loc[~is_intercept].reset_index(drop=True)


def reconcile(
    tidy_df: pd.DataFrame,
    stats_labels: bool = True,
    conf_int: bool = True,
    exclude_intercept: bool = False,
) -> ReconciledTable:
    """Run every cleaning step in order.

    Raises:
        DataShapeError: no ``estimate`` column.
        DuplicateTermsError: term labels cannot be made unique; the error
            carries the partially cleaned table.
    """
    require_estimate(tidy_df)
    tidy_df = tidy_df.copy()
    if stats_labels:
        tidy_df = drop_incomplete_rows(tidy_df)
    tidy_df = ensure_term_column(tidy_df)
    tidy_df = resolve_duplicate_terms(tidy_df)
    tidy_df["term"] = tidy_df["term"].astype(str)

    if stats_labels and not {"p.value", "statistic"}.issubset(tidy_df.columns):
        logger.info("Table lacks 'statistic' or 'p.value'; skipping statistical labels")
        stats_labels = False

    tidy_df, has_interval = fill_conf_int(tidy_df)
    conf_int = conf_int and has_interval

    if exclude_intercept:
        tidy_df = drop_intercept(tidy_df)

    return ReconciledTable(table=tidy_df.reset_index(drop=True), conf_int=conf_int, stats_labels=stats_labels)


def sort_terms(tidy_df: pd.DataFrame, sort: SortOrder = SortOrder.NONE) -> pd.DataFrame:
    """Reorder rows by estimate and make ``term`` an ordered categorical.

    The sort is stable, so ties keep their input order.  Categories follow
    the row order, which the renderer uses for the y axis.
    """
    sort = SortOrder(sort)
    estimates = pd.to_numeric(tidy_df["estimate"], errors="coerce").to_numpy(dtype=float)
    if sort == SortOrder.ASCENDING:
        order = np.argsort(estimates, kind="stable")
    elif sort == SortOrder.DESCENDING:
        order = np.argsort(-estimates, kind="stable")
    else:
        order = np.arange(len(tidy_df))
    ordered = tidy_df.iloc[order].reset_index(drop=True)
    terms = ordered["term"].astype(str)
    ordered["term"] = pd.Categorical(terms, categories=terms.tolist(), ordered=True)
    return ordered
