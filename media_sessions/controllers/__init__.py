"""Controllers for Media Sessions."""
