"""Command modules registered on the planka-doctor Typer application."""
