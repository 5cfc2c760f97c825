"""CLI application using Typer for coefficient plots from result tables."""

from pathlib import Path
from typing import Optional

import pandas as pd
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..api import ggcoefstats, make_options, prepare
from ..config.settings import settings
from ..core.captions import bayes_caption, heterogeneity_caption, meta_subtitle
from ..core.errors import CoefStatsError
from ..meta import run_meta_analysis
from ..plot import save_figure
from ..utils.logging import configure_logging, get_logger

app = typer.Typer(
    name="coefstats",
    help="Dot-and-whisker plots annotated with test statistics",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override COEFSTATS_LOG_LEVEL (DEBUG, INFO, ...)"),
    log_format: Optional[str] = typer.Option(None, "--log-format", help="Override COEFSTATS_LOG_FORMAT (json or text)"),
) -> None:
    """Dot-and-whisker plots annotated with test statistics."""
    if log_level or log_format:
        configure_logging(level=log_level, log_format=log_format)


def _read_table(path: Path) -> pd.DataFrame:
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    return pd.read_csv(path)


def _fail(exc: CoefStatsError) -> None:
    console.print(f"[red]Error: {escape(str(exc))}[/red]")
    raise typer.Exit(1)


@app.command()
def plot(
    table_file: Path = typer.Argument(..., exists=True, help="CSV or parquet file with a tidy result table"),
    statistic: Optional[str] = typer.Option(None, "--statistic", "-s", help="Statistic behind the p-values (t, f, z, chi)"),
    sort: str = typer.Option("none", "--sort", help="Term order: none, ascending or descending"),
    k: int = typer.Option(settings.k, "--k", "-k", help="Decimal places in labels"),
    exclude_intercept: bool = typer.Option(False, "--exclude-intercept/--keep-intercept"),
    only_significant: bool = typer.Option(False, "--only-significant", help="Label only terms with p < 0.05"),
    meta: bool = typer.Option(False, "--meta/--no-meta", help="Add a random-effects meta-analysis summary"),
    meta_type: str = typer.Option("parametric", "--meta-type", help="parametric, robust or bayes"),
    title: Optional[str] = typer.Option(None, "--title"),
    xlab: Optional[str] = typer.Option(None, "--xlab"),
    output: Path = typer.Option(Path("coefplot.png"), "--output", "-o", help="Output image file (PNG/SVG/PDF)"),
) -> None:
    """
    Render a coefficient plot from a tidy result table.

    The table must contain ``term`` and ``estimate`` columns; labels
    additionally need ``statistic`` and ``p.value``.
    """
    console.print("[bold blue]Building coefficient plot[/bold blue]")
    df = _read_table(table_file)
    try:
        fig = ggcoefstats(
            df,
            output="plot",
            statistic=statistic,
            stats_labels=statistic is not None,
            sort=sort,
            k=k,
            exclude_intercept=exclude_intercept,
            only_significant=only_significant,
            meta_analytic_effect=meta,
            meta_type=meta_type,
            title=title,
            xlab=xlab,
        )
    except CoefStatsError as exc:
        _fail(exc)
    if isinstance(fig, pd.DataFrame):
        console.print("[yellow]Duplicate terms could not be resolved; no plot written[/yellow]")
        raise typer.Exit(1)
    save_figure(fig, output)
    console.print(f"[green]✓ Coefficient plot saved to {output}[/green]")


@app.command()
def tidy(
    table_file: Path = typer.Argument(..., exists=True, help="CSV or parquet file with a tidy result table"),
    statistic: Optional[str] = typer.Option(None, "--statistic", "-s", help="Statistic behind the p-values (t, f, z, chi)"),
    sort: str = typer.Option("none", "--sort", help="Term order: none, ascending or descending"),
    k: int = typer.Option(settings.k, "--k", "-k", help="Decimal places in labels"),
    exclude_intercept: bool = typer.Option(False, "--exclude-intercept/--keep-intercept"),
    out: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the cleaned table to this CSV"),
) -> None:
    """Clean a result table and show it with its labels."""
    df = _read_table(table_file)
    try:
        options = make_options(
            output="tidy",
            statistic=statistic,
            stats_labels=statistic is not None,
            sort=sort,
            k=k,
            exclude_intercept=exclude_intercept,
            on_duplicate="raise",
        )
        result = prepare(df, options)
    except CoefStatsError as exc:
        _fail(exc)
    cleaned = result.table
    table = Table(title=f"Tidy table ({len(cleaned)} terms)")
    columns = [c for c in ("term", "estimate", "conf.low", "conf.high", "p.value", "label") if c in cleaned.columns]
    for column in columns:
        table.add_column(column, style="cyan" if column == "term" else None)
    for _, row in cleaned.iterrows():
        table.add_row(*[
            f"{row[c]:.{k}f}" if isinstance(row[c], float) else str(row[c])
            for c in columns
        ])
    console.print(table)
    if out is not None:
        cleaned.to_csv(out, index=False)
        console.print(f"[green]✓ Saved: {out}[/green]")


@app.command()
def meta(
    table_file: Path = typer.Argument(..., exists=True, help="CSV or parquet file with estimate and std.error columns"),
    meta_type: str = typer.Option("parametric", "--meta-type", help="parametric, robust or bayes"),
    conf_level: float = typer.Option(settings.conf_level, "--conf-level"),
    k: int = typer.Option(settings.k, "--k", "-k", help="Decimal places"),
) -> None:
    """
    Pool the estimates of a result table with a random-effects model.

    Prints the summary effect and, for the parametric model, the
    heterogeneity statistics.
    """
    console.print("[bold blue]Running meta-analysis[/bold blue]")
    df = _read_table(table_file)
    try:
        options = make_options(meta_type=meta_type, conf_level=conf_level, k=k)
        result = run_meta_analysis(df, meta_type=options.meta_type, conf_level=options.conf_level)
    except CoefStatsError as exc:
        _fail(exc)
    console.print(meta_subtitle(result, k))
    if result.heterogeneity is not None:
        console.print(heterogeneity_caption(result, k))
        console.print(f"[cyan]{result.heterogeneity.interpretation}[/cyan]")
    if result.log_bf01 is not None:
        console.print(bayes_caption(result, k))


@app.command()
def version() -> None:
    """Show version information."""
    from .. import __version__
    console.print(f"coefstats v{__version__}")


if __name__ == "__main__":
    app()
