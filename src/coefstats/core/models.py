"""Option bundle and input variants for coefficient plots.

``CoefStatsOptions`` gathers every per-call setting of
:func:`coefstats.ggcoefstats`.  Defaults that users commonly want to
change globally (rounding, confidence level, palette) are read from
:mod:`coefstats.config.settings`.  ``ModelInput`` and ``TableInput`` are
the two variants produced by the input normalizer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Literal, Optional, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config.settings import settings
from ..utils.logging import get_logger

logger = get_logger(__name__)


class StatisticKind(str, Enum):
    """Test statistic backing the p-values of a result table."""

    T = "t"
    F = "f"
    Z = "z"
    CHI = "chi"

    @classmethod
    def parse(cls, value: Any) -> "StatisticKind":
        """Map user spellings (``"t"``, ``"F"``, ``"chi2"``, ...) onto a kind.

        Only the first letter counts, the way statistic names are usually
        abbreviated in result tables.
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        lookup = {"t": cls.T, "f": cls.F, "z": cls.Z, "c": cls.CHI}
        if not text or text[0] not in lookup:
            raise ValueError(f"Unknown statistic '{value}'; use one of t, f, z, chi")
        return lookup[text[0]]

    @property
    def symbol(self) -> str:
        return {"t": "t", "f": "F", "z": "z", "chi": "χ²"}[self.value]


class SortOrder(str, Enum):
    """Ordering of terms along the y axis."""

    NONE = "none"
    ASCENDING = "ascending"
    DESCENDING = "descending"


class OutputMode(str, Enum):
    """What :func:`coefstats.ggcoefstats` returns."""

    PLOT = "plot"
    TIDY = "tidy"
    GLANCE = "glance"
    SUBTITLE = "subtitle"
    CAPTION = "caption"


class MetaType(str, Enum):
    """Flavour of random-effects meta-analysis."""

    PARAMETRIC = "parametric"
    ROBUST = "robust"
    BAYES = "bayes"

    @classmethod
    def parse(cls, value: Any) -> "MetaType":
        if isinstance(value, cls):
            return value
        aliases = {
            "parametric": cls.PARAMETRIC,
            "p": cls.PARAMETRIC,
            "robust": cls.ROBUST,
            "r": cls.ROBUST,
            "bayes": cls.BAYES,
            "bayesian": cls.BAYES,
            "bf": cls.BAYES,
        }
        key = str(value).strip().lower()
        if key not in aliases:
            raise ValueError(f"Unknown meta-analysis type '{value}'; use parametric, robust or bayes")
        return aliases[key]


class EffectSizeKind(str, Enum):
    """Effect size reported for ANOVA tables."""

    ETA = "eta"
    OMEGA = "omega"


class CoefStatsOptions(BaseModel):
    """Configuration bundle for one coefficient plot."""

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    output: OutputMode = OutputMode.PLOT
    statistic: Optional[StatisticKind] = None
    conf_int: bool = True
    conf_level: float = Field(default_factory=lambda: settings.conf_level, gt=0.0, lt=1.0)
    k: int = Field(default_factory=lambda: settings.k, ge=0)
    exclude_intercept: bool = False
    effsize: EffectSizeKind = EffectSizeKind.ETA

    # Meta-analysis
    meta_analytic_effect: bool = False
    meta_type: MetaType = MetaType.PARAMETRIC
    bf_message: bool = True

    # Annotations
    sort: SortOrder = SortOrder.NONE
    xlab: Optional[str] = None
    ylab: str = "term"
    title: Optional[str] = None
    subtitle: Optional[str] = None
    caption: Optional[str] = None
    only_significant: bool = False

    # Geometry
    point_args: Dict[str, Any] = Field(default_factory=lambda: {"s": 50, "color": "blue"})
    errorbar_args: Dict[str, Any] = Field(default_factory=lambda: {"capsize": 0, "color": "black"})
    vline: bool = True
    vline_args: Dict[str, Any] = Field(
        default_factory=lambda: {"linewidth": 1, "linestyle": "--", "color": "black"}
    )
    stats_labels: bool = True
    stats_label_color: Optional[str] = None
    stats_label_args: Dict[str, Any] = Field(default_factory=lambda: {"fontsize": 8})
    palette: str = Field(default_factory=lambda: settings.palette)
    style: Optional[str] = Field(None, description="Matplotlib style sheet applied to the figure")

    on_duplicate: Literal["return", "raise"] = "return"

    @field_validator("statistic", mode="before")
    @classmethod
    def _parse_statistic(cls, v: Any) -> Optional[StatisticKind]:
        if v is None:
            return None
        return StatisticKind.parse(v)

    @field_validator("meta_type", mode="before")
    @classmethod
    def _parse_meta_type(cls, v: Any) -> MetaType:
        return MetaType.parse(v)

    @field_validator("sort", mode="before")
    @classmethod
    def _parse_sort(cls, v: Any) -> SortOrder:
        if isinstance(v, SortOrder):
            return v
        try:
            return SortOrder(str(v).lower())
        except ValueError:
            logger.warning(f"Unknown sort order '{v}'; keeping the original term order")
            return SortOrder.NONE

    @property
    def wants_labels(self) -> bool:
        """Whether per-term statistic labels will be drawn."""
        return self.output == OutputMode.PLOT and self.stats_labels


@dataclass(frozen=True)
class ModelInput:
    """A fitted model to be tidied.

    ``kind`` is ``"regression"`` for statsmodels results objects and
    ``"anova"`` for ANOVA tables.
    """

    model: Any
    kind: str = "regression"


@dataclass(frozen=True)
class TableInput:
    """A pre-tidied result table supplied by the caller."""

    table: pd.DataFrame


NormalizedInput = Union[ModelInput, TableInput]
