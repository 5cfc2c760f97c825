"""Test suite for coefstats.

Unit tests cover the option models, column reconciliation, label
formatting, tidying of statsmodels objects and the meta-analysis
variants; integration tests run the full pipeline and the CLI.  Run
``pytest`` from the project root.
"""
