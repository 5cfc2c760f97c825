"""Matplotlib rendering of coefficient plots."""

from .coefplot import build_coefplot, label_colors, save_figure  # noqa: F401
