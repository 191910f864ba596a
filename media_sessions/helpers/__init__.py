"""Helpers for Media Sessions."""
