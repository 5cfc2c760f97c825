"""Unit tests for the option bundle and enum parsing."""

import pytest

from coefstats.api import make_options
from coefstats.core.errors import ConfigurationError
from coefstats.core.models import (
    CoefStatsOptions,
    MetaType,
    OutputMode,
    SortOrder,
    StatisticKind,
)


class TestStatisticKind:
    """Tests for statistic name parsing."""

    def test_parse_first_letter(self) -> None:
        """Test only the first letter decides the kind."""
        assert StatisticKind.parse("t") == StatisticKind.T
        assert StatisticKind.parse("F") == StatisticKind.F
        assert StatisticKind.parse("z") == StatisticKind.Z
        assert StatisticKind.parse("chi") == StatisticKind.CHI
        assert StatisticKind.parse("chi2") == StatisticKind.CHI
        assert StatisticKind.parse("Chisq") == StatisticKind.CHI

    def test_parse_unknown(self) -> None:
        """Test unknown names are rejected."""
        with pytest.raises(ValueError):
            StatisticKind.parse("w")
        with pytest.raises(ValueError):
            StatisticKind.parse("")

    def test_symbols(self) -> None:
        assert StatisticKind.T.symbol == "t"
        assert StatisticKind.F.symbol == "F"
        assert StatisticKind.CHI.symbol == "χ²"


class TestMetaType:
    """Tests for meta-analysis type aliases."""

    def test_aliases(self) -> None:
        assert MetaType.parse("p") == MetaType.PARAMETRIC
        assert MetaType.parse("Robust") == MetaType.ROBUST
        assert MetaType.parse("r") == MetaType.ROBUST
        assert MetaType.parse("bf") == MetaType.BAYES
        assert MetaType.parse("bayesian") == MetaType.BAYES

    def test_unknown(self) -> None:
        with pytest.raises(ValueError):
            MetaType.parse("nonparametric")


class TestCoefStatsOptions:
    """Tests for option validation."""

    def test_defaults(self) -> None:
        """Test defaults match the documented behaviour."""
        options = CoefStatsOptions()
        assert options.output == OutputMode.PLOT
        assert options.statistic is None
        assert options.sort == SortOrder.NONE
        assert options.k == 2
        assert options.conf_level == pytest.approx(0.95)
        assert options.stats_labels is True
        assert options.on_duplicate == "return"

    def test_string_values_are_parsed(self) -> None:
        options = CoefStatsOptions(output="tidy", statistic="T", meta_type="bf", sort="descending")
        assert options.output == OutputMode.TIDY
        assert options.statistic == StatisticKind.T
        assert options.meta_type == MetaType.BAYES
        assert options.sort == SortOrder.DESCENDING

    def test_unknown_sort_falls_back_to_none(self) -> None:
        """Test an unknown sort order keeps the input order."""
        options = CoefStatsOptions(sort="sideways")
        assert options.sort == SortOrder.NONE

    def test_wants_labels_only_for_plots(self) -> None:
        assert CoefStatsOptions().wants_labels is True
        assert CoefStatsOptions(output="tidy").wants_labels is False
        assert CoefStatsOptions(stats_labels=False).wants_labels is False


class TestMakeOptions:
    """Tests for the option factory used by the entry point."""

    def test_invalid_output_raises_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            make_options(output="html")

    def test_invalid_statistic_raises_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            make_options(statistic="q")

    def test_unknown_option_raises_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            make_options(colour="red")

    def test_invalid_conf_level(self) -> None:
        with pytest.raises(ConfigurationError):
            make_options(conf_level=1.5)

    def test_overrides_existing_options(self) -> None:
        """Test keyword arguments override a prepared bundle."""
        base = CoefStatsOptions(statistic="z", k=3)
        merged = make_options(base, sort="ascending")
        assert merged.statistic == StatisticKind.Z
        assert merged.k == 3
        assert merged.sort == SortOrder.ASCENDING

    def test_returns_bundle_unchanged(self) -> None:
        base = CoefStatsOptions(k=4)
        assert make_options(base) is base
