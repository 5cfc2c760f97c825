"""Unit tests for coefficient plot rendering."""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402
import pytest  # noqa: E402

from coefstats.core.errors import ConfigurationError  # noqa: E402
from coefstats.core.models import CoefStatsOptions  # noqa: E402
from coefstats.core.reconcile import sort_terms  # noqa: E402
from coefstats.plot import build_coefplot, label_colors, save_figure  # noqa: E402


@pytest.fixture
def table() -> pd.DataFrame:
    df = pd.DataFrame({
        "term": ["a", "b", "c"],
        "estimate": [0.5, -0.2, 1.1],
        "conf.low": [0.1, -0.6, 0.7],
        "conf.high": [0.9, 0.2, 1.5],
        "label": ["β = 0.50", "", "β = 1.10"],
    })
    return sort_terms(df, "none")


class TestLabelColors:
    """Tests for per-term label colours."""

    def test_fixed_color(self) -> None:
        assert label_colors(3, "Dark2", fixed_color="red") == ["red", "red", "red"]

    def test_qualitative_palette(self) -> None:
        colors = label_colors(3, "Dark2")
        assert len(colors) == 3
        assert len(set(colors)) == 3

    def test_too_many_terms_fall_back_to_black(self) -> None:
        assert label_colors(10, "Dark2") == ["black"] * 10

    def test_continuous_palette(self) -> None:
        assert len(label_colors(30, "viridis")) == 30

    def test_unknown_palette(self) -> None:
        with pytest.raises(ConfigurationError, match="palette"):
            label_colors(3, "no-such-palette")


class TestBuildCoefplot:
    """Tests for the rendered figure."""

    def test_first_term_on_top(self, table: pd.DataFrame) -> None:
        fig = build_coefplot(table, CoefStatsOptions())
        ax = fig.axes[0]
        ticks = [tick.get_text() for tick in ax.get_yticklabels()]
        assert ticks == ["c", "b", "a"]
        plt.close(fig)

    def test_empty_labels_not_drawn(self, table: pd.DataFrame) -> None:
        fig = build_coefplot(table, CoefStatsOptions())
        ax = fig.axes[0]
        assert [text.get_text() for text in ax.texts] == ["β = 0.50", "β = 1.10"]
        plt.close(fig)

    def test_labels_switched_off(self, table: pd.DataFrame) -> None:
        fig = build_coefplot(table, CoefStatsOptions(), stats_labels=False)
        assert len(fig.axes[0].texts) == 0
        plt.close(fig)

    def test_titles_and_axis_labels(self, table: pd.DataFrame) -> None:
        options = CoefStatsOptions(title="Model", ylab="predictor")
        fig = build_coefplot(table, options, xlab="estimate", subtitle="sub", caption="cap")
        ax = fig.axes[0]
        assert ax.get_xlabel() == "estimate"
        assert ax.get_ylabel() == "predictor"
        assert ax.get_title(loc="left") == "sub"
        assert fig._suptitle.get_text() == "Model"
        assert "cap" in [text.get_text() for text in fig.texts]
        plt.close(fig)

    def test_default_xlab(self, table: pd.DataFrame) -> None:
        fig = build_coefplot(table, CoefStatsOptions(), conf_int=False)
        assert fig.axes[0].get_xlabel() == "regression coefficient"
        plt.close(fig)

    def test_save_figure(self, table: pd.DataFrame, tmp_path) -> None:
        fig = build_coefplot(table, CoefStatsOptions())
        path = save_figure(fig, tmp_path / "plots" / "coef.png", dpi=50)
        assert path.exists()
        assert path.stat().st_size > 0


class TestGeometryArguments:
    """Tests for caller-supplied matplotlib keyword arguments."""

    def test_user_keys_override_defaults(self, table: pd.DataFrame) -> None:
        options = CoefStatsOptions(
            errorbar_args={"fmt": "o", "color": "gray"},
            point_args={"zorder": 5, "color": "red"},
            stats_label_args={"color": "green", "bbox": None, "xytext": (0, 12)},
        )
        fig = build_coefplot(table, options)
        ax = fig.axes[0]
        assert len(ax.texts) == 2
        assert all(text.get_color() == "green" for text in ax.texts)
        assert all(text.get_bbox_patch() is None for text in ax.texts)
        assert ax.collections[-1].get_zorder() == 5
        plt.close(fig)
