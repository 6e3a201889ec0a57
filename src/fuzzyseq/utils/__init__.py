"""Shared helpers: resource management and structural protocols."""
