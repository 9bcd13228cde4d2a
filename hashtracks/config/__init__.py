"""Settings and the source catalogue."""
