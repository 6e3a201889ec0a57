"""Alignment engines."""
