"""Audio engine implementations."""
