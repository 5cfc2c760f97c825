"""Dot-and-whisker plot rendering.

This module draws the finished result table with matplotlib: one row
per term, a point at the estimate, horizontal whiskers for the
confidence interval, a dashed reference line at zero and a boxed text
label with the statistical details next to each point.
"""

from __future__ import annotations

from contextlib import nullcontext
from pathlib import Path
from typing import List, Optional

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.colors import ListedColormap
from matplotlib.figure import Figure

from ..config.settings import settings
from ..core.errors import ConfigurationError
from ..core.models import CoefStatsOptions
from ..utils.logging import get_logger

logger = get_logger(__name__)

# Listed colormaps with at most this many colours are treated as
# qualitative palettes and indexed one colour per term.
QUALITATIVE_MAX_COLORS = 24


def label_colors(n_terms: int, palette: str, fixed_color: Optional[str] = None) -> List:
    """One label colour per term.

    A fixed colour wins.  Otherwise colours come from the named matplotlib
    colormap; qualitative palettes with fewer colours than terms fall
    back to black.
    """
    if fixed_color is not None:
        return [fixed_color] * n_terms
    try:
        cmap = matplotlib.colormaps[palette]
    except KeyError as exc:
        raise ConfigurationError(f"Unknown palette '{palette}'") from exc
    if isinstance(cmap, ListedColormap) and cmap.N <= QUALITATIVE_MAX_COLORS:
        if cmap.N < n_terms:
            logger.warning(
                f"Palette '{palette}' has {cmap.N} colours but {n_terms} terms are shown; using black labels"
            )
            return ["black"] * n_terms
        return [cmap(i) for i in range(n_terms)]
    return [cmap(x) for x in np.linspace(0.0, 1.0, max(n_terms, 1))][:n_terms]


def _term_order(table: pd.DataFrame) -> List[str]:
    terms = table["term"]
    if isinstance(terms.dtype, pd.CategoricalDtype):
        return [str(level) for level in terms.cat.categories]
    return [str(term) for term in terms]


def build_coefplot(
    table: pd.DataFrame,
    options: CoefStatsOptions,
    conf_int: bool = True,
    stats_labels: bool = True,
    xlab: Optional[str] = None,
    subtitle: Optional[str] = None,
    caption: Optional[str] = None,
) -> Figure:
    """Draw a coefficient plot from a reconciled, sorted table.

    Args:
        table: Table with ``term``, ``estimate`` and, depending on the
            switches, ``conf.low``/``conf.high`` and ``label``.
        options: Plot options (geometry arguments, labels, palette).
        conf_int: Draw confidence interval whiskers.
        stats_labels: Draw the ``label`` column next to each point.
        xlab: X axis label; defaults to ``options.xlab``.
        subtitle: Subtitle text shown above the axes.
        caption: Caption text shown below the axes.

    Returns:
        The matplotlib figure.  The caller owns it and should close it.
    """
    order = _term_order(table)
    n_terms = len(order)
    position = {term: n_terms - 1 - i for i, term in enumerate(order)}
    ys = table["term"].astype(str).map(position).to_numpy(dtype=float)
    estimates = pd.to_numeric(table["estimate"], errors="coerce").to_numpy(dtype=float)

    style = plt.style.context(options.style) if options.style else nullcontext()
    with style:
        fig, ax = plt.subplots(figsize=settings.figsize)

        if options.vline:
            ax.axvline(0, **options.vline_args)

        if conf_int:
            low = pd.to_numeric(table["conf.low"], errors="coerce").to_numpy(dtype=float)
            high = pd.to_numeric(table["conf.high"], errors="coerce").to_numpy(dtype=float)
            shown = ~(np.isnan(low) | np.isnan(high) | np.isnan(estimates))
            if shown.any():
                xerr = np.vstack([
                    np.clip(estimates[shown] - low[shown], 0, None),
                    np.clip(high[shown] - estimates[shown], 0, None),
                ])
                ax.errorbar(estimates[shown], ys[shown], xerr=xerr, **{"fmt": "none", **options.errorbar_args})

        ax.scatter(estimates, ys, **{"zorder": 3, **options.point_args})

        if stats_labels and "label" in table.columns:
            colors = label_colors(n_terms, options.palette, options.stats_label_color)
            for x, y, label in zip(estimates, ys, table["label"]):
                if not isinstance(label, str) or not label or np.isnan(x):
                    continue
                color = colors[n_terms - 1 - int(y)]
                text_args = {
                    "xytext": (0, 8),
                    "textcoords": "offset points",
                    "ha": "center",
                    "va": "bottom",
                    "color": color,
                    "bbox": dict(boxstyle="round,pad=0.2", fc="white", ec=color),
                    **options.stats_label_args,
                }
                ax.annotate(label, xy=(x, y), **text_args)

        ax.set_yticks(range(n_terms))
        ax.set_yticklabels(list(reversed(order)))
        ax.set_ylim(-0.75, n_terms - 0.25)
        ax.set_xlabel(xlab or options.xlab or "regression coefficient")
        ax.set_ylabel(options.ylab)
        if options.title:
            fig.suptitle(options.title, fontweight="bold")
        if subtitle:
            ax.set_title(subtitle, fontsize=9, loc="left")
        bottom = 0.0
        if caption:
            n_lines = caption.count("\n") + 1
            fig.text(0.99, 0.01, caption, ha="right", va="bottom", fontsize=8)
            bottom = min(0.3, 0.035 * n_lines + 0.02)
        fig.tight_layout(rect=(0, bottom, 1, 1))
    logger.debug(f"Built coefficient plot with {n_terms} terms")
    return fig


def save_figure(fig: Figure, output_path: Path, dpi: Optional[int] = None) -> Path:
    """Save ``fig`` to ``output_path`` (PNG, SVG, PDF…) and close it."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, bbox_inches="tight", dpi=dpi or settings.dpi)
    plt.close(fig)
    logger.info(f"Coefficient plot saved to {output_path}")
    return output_path
