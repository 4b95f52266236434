"""Shared helpers: logging, validation and unit conversion."""
