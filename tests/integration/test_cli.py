"""Tests for the coefstats command line."""

import matplotlib

matplotlib.use("Agg")

import pandas as pd  # noqa: E402
import pytest  # noqa: E402
from typer.testing import CliRunner  # noqa: E402

from coefstats import __version__  # noqa: E402
from coefstats.cli.main import app  # noqa: E402
from coefstats.utils.logging import configure_logging  # noqa: E402

pytestmark = pytest.mark.integration

runner = CliRunner()


@pytest.fixture
def results_csv(tmp_path):
    path = tmp_path / "results.csv"
    pd.DataFrame({
        "term": ["(Intercept)", "dose", "age"],
        "estimate": [1.2, 0.45, -0.08],
        "std.error": [0.3, 0.1, 0.05],
        "statistic": [4.0, 4.5, -1.6],
        "p.value": [0.0002, 0.0001, 0.12],
        "conf.low": [0.6, 0.25, -0.18],
        "conf.high": [1.8, 0.65, 0.02],
    }).to_csv(path, index=False)
    return path


def test_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_plot_writes_image(results_csv, tmp_path) -> None:
    output = tmp_path / "out" / "coef.png"
    result = runner.invoke(
        app,
        ["plot", str(results_csv), "--statistic", "t", "--sort", "descending", "-o", str(output)],
    )
    assert result.exit_code == 0, result.stdout
    assert output.exists()


def test_plot_without_statistic(results_csv, tmp_path) -> None:
    output = tmp_path / "coef.png"
    result = runner.invoke(app, ["plot", str(results_csv), "-o", str(output)])
    assert result.exit_code == 0, result.stdout
    assert output.exists()


def test_tidy_writes_csv(results_csv, tmp_path) -> None:
    output = tmp_path / "tidy.csv"
    result = runner.invoke(
        app,
        ["tidy", str(results_csv), "--statistic", "t", "--exclude-intercept", "--output", str(output)],
    )
    assert result.exit_code == 0, result.stdout
    cleaned = pd.read_csv(output)
    assert cleaned["term"].tolist() == ["dose", "age"]
    assert cleaned["label"].iloc[0] == "β = 0.45, t = 4.50, p < 0.001"


def test_tidy_duplicate_terms_fail(tmp_path) -> None:
    path = tmp_path / "dup.csv"
    pd.DataFrame({"term": ["a", "a"], "estimate": [1.0, 2.0]}).to_csv(path, index=False)
    result = runner.invoke(app, ["tidy", str(path)])
    assert result.exit_code == 1
    assert "unique" in result.stdout


def test_meta(results_csv) -> None:
    result = runner.invoke(app, ["meta", str(results_csv)])
    assert result.exit_code == 0, result.stdout
    assert "Summary effect" in result.stdout
    assert "Heterogeneity" in result.stdout


def test_meta_bayes(results_csv) -> None:
    result = runner.invoke(app, ["meta", str(results_csv), "--meta-type", "bayes"])
    assert result.exit_code == 0, result.stdout
    assert "log_e(BF01)" in result.stdout


def test_meta_missing_std_error(tmp_path) -> None:
    path = tmp_path / "no_se.csv"
    pd.DataFrame({"term": ["a", "b"], "estimate": [1.0, 2.0]}).to_csv(path, index=False)
    result = runner.invoke(app, ["meta", str(path)])
    assert result.exit_code == 1
    assert "std.error" in result.stdout


def test_logging_options(results_csv) -> None:
    try:
        result = runner.invoke(app, ["--log-level", "debug", "--log-format", "text", "meta", str(results_csv)])
    finally:
        configure_logging()
    assert result.exit_code == 0, result.stdout
    assert "Summary effect" in result.stdout
