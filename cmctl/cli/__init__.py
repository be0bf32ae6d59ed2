"""Typer command-line interface for cmctl."""
