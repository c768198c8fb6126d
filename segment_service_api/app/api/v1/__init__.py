"""Version 1 of the segment service HTTP API."""
