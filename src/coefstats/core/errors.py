"""Exception hierarchy for coefficient plot construction.

Every failure raised by the pipeline derives from :class:`CoefStatsError`
so callers can catch one type.  The only soft failure left is the
duplicate-term case: :class:`DuplicateTermsError` carries the partially
cleaned table and the entry point decides whether to return it or to
re-raise.
"""

from __future__ import annotations

from typing import Optional

import pandas as pd


class CoefStatsError(Exception):
    """Base class for all errors raised by coefstats."""


class ConfigurationError(CoefStatsError):
    """A required option is missing or options are inconsistent."""


class UnsupportedModelError(CoefStatsError):
    """The input is neither a result table nor a model that can be tidied."""

    def __init__(self, model_kind: str, reason: Optional[str] = None) -> None:
        self.model_kind = model_kind
        message = f"Cannot tidy objects of type '{model_kind}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DataShapeError(CoefStatsError):
    """The result table lacks columns the requested operation needs."""


class DuplicateTermsError(CoefStatsError):
    """Term labels are still repeated after joining the grouping columns."""

    def __init__(self, table: pd.DataFrame, duplicates: list) -> None:
        self.table = table
        self.duplicates = duplicates
        super().__init__(
            "All elements in the column 'term' should be unique; "
            f"repeated: {', '.join(map(str, duplicates))}"
        )


class MetaAnalysisError(CoefStatsError):
    """The random-effects meta-analysis could not be computed."""
