"""Typer command line interface for planka-doctor."""
