"""Configuration loading for planka-doctor."""
