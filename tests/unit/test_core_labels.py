"""Unit tests for label formatting."""

import numpy as np
import pandas as pd
import pytest

from coefstats.core.labels import (
    add_labels,
    format_df,
    format_p_value,
    make_label,
    specify_decimal,
)
from coefstats.core.models import EffectSizeKind, StatisticKind


class TestNumberFormatting:
    """Tests for decimal, p-value and df formatting."""

    def test_specify_decimal(self) -> None:
        assert specify_decimal(3.14159, 2) == "3.14"
        assert specify_decimal(2, 3) == "2.000"
        assert specify_decimal(1234.5, 0) == "1234"
        assert specify_decimal(np.nan, 2) == "NA"
        assert specify_decimal(None, 2) == "NA"

    def test_format_p_value(self) -> None:
        assert format_p_value(3.28e-15, 2) == "p < 0.001"
        assert format_p_value(0.0009, 3) == "p < 0.001"
        assert format_p_value(0.0123, 3) == "p = 0.012"
        assert format_p_value(0.5, 2) == "p = 0.50"
        assert format_p_value(np.nan) == "p = NA"

    def test_format_df(self) -> None:
        assert format_df(394.0) == "394"
        assert format_df(23.456, 2) == "23.46"


def _row(**values) -> pd.Series:
    return pd.Series(values)


class TestMakeLabel:
    """Tests for the per-statistic label templates."""

    def test_t_with_df(self) -> None:
        row = _row(estimate=0.382047, statistic=8.2059, **{"p.value": 3.28e-15, "df.error": 394})
        assert make_label(row, StatisticKind.T, k=2) == "β = 0.38, t(394) = 8.21, p < 0.001"

    def test_t_without_df(self) -> None:
        row = _row(estimate=0.382047, statistic=8.2059, **{"p.value": 3.28e-15})
        assert make_label(row, StatisticKind.T, k=2) == "β = 0.38, t = 8.21, p < 0.001"

    def test_t_fractional_df(self) -> None:
        row = _row(estimate=1.0, statistic=2.0, **{"p.value": 0.06, "df": 23.456})
        assert make_label(row, StatisticKind.T, k=2) == "β = 1.00, t(23.46) = 2.00, p = 0.06"

    def test_z(self) -> None:
        row = _row(estimate=1.5, statistic=2.0, **{"p.value": 0.0455, "df.error": 10})
        assert make_label(row, StatisticKind.Z, k=2) == "β = 1.50, z = 2.00, p = 0.05"

    def test_chi_squared(self) -> None:
        row = _row(estimate=1.5, statistic=2.0, df=2, **{"p.value": 0.3679})
        assert make_label(row, StatisticKind.CHI, k=2) == "β = 1.50, χ²(2) = 2.00, p = 0.37"

    def test_f_with_effect_size(self) -> None:
        row = _row(estimate=1 / 6, statistic=4.0, df1=1, df2=20, effsize="eta", **{"p.value": 0.0593})
        assert make_label(row, StatisticKind.F, k=2) == "F(1, 20) = 4.00, p = 0.06, η²p = 0.17"

    def test_f_omega_from_option(self) -> None:
        row = _row(estimate=0.12, statistic=4.0, df1=1, df2=20, **{"p.value": 0.0593})
        label = make_label(row, StatisticKind.F, k=2, effsize=EffectSizeKind.OMEGA)
        assert label == "F(1, 20) = 4.00, p = 0.06, ω²p = 0.12"

    def test_f_without_df(self) -> None:
        row = _row(estimate=0.12, statistic=4.0, **{"p.value": 0.0593})
        assert make_label(row, StatisticKind.F, k=2) == "F = 4.00, p = 0.06, η²p = 0.12"

    def test_precision(self) -> None:
        row = _row(estimate=0.382047, statistic=8.2059, **{"p.value": 0.01234, "df.error": 394})
        assert make_label(row, StatisticKind.T, k=3) == "β = 0.382, t(394) = 8.206, p = 0.012"

    @pytest.mark.parametrize("missing", ["estimate", "statistic", "p.value"])
    def test_missing_field_suppresses_label(self, missing: str) -> None:
        values = {"estimate": 1.0, "statistic": 2.0, "p.value": 0.05}
        values[missing] = np.nan
        assert make_label(pd.Series(values), StatisticKind.T) == ""


class TestAddLabels:
    """Tests for the label column."""

    @pytest.fixture
    def table(self) -> pd.DataFrame:
        return pd.DataFrame({
            "term": ["a", "b", "c", "d"],
            "estimate": [0.5, 0.1, -0.8, 0.2],
            "statistic": [3.0, 0.5, -4.0, 1.96],
            "p.value": [0.004, 0.62, 0.0001, 0.05],
            "df.error": [30, 30, 30, 30],
        })

    def test_every_row_labelled(self, table: pd.DataFrame) -> None:
        labelled = add_labels(table, "t", k=2)
        assert "label" in labelled.columns
        assert all(label.startswith("β = ") for label in labelled["label"])
        assert "label" not in table.columns

    def test_only_significant_blanks_large_p(self, table: pd.DataFrame) -> None:
        """Test rows with p >= 0.05 get an empty label."""
        labelled = add_labels(table, StatisticKind.T, only_significant=True)
        for p_value, label in zip(labelled["p.value"], labelled["label"]):
            if p_value >= 0.05:
                assert label == ""
            else:
                assert label != ""

    def test_custom_threshold(self, table: pd.DataFrame) -> None:
        labelled = add_labels(table, "t", only_significant=True, threshold=0.001)
        assert labelled["label"].astype(bool).tolist() == [False, False, True, False]
