"""Command line interface for Strata."""
