"""Synchronization of source resolutions into destination tracking issues."""
