"""Diagnostics use cases: environment, health, probing and advice."""
