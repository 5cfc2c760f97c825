"""Integration test package.

These tests exercise the end-to-end behaviour of ``ggcoefstats`` and
the command line interface.  They fit small statsmodels models and
render matplotlib figures with the Agg backend.
"""
