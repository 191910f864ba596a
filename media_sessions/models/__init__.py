"""Models for Media Sessions."""
