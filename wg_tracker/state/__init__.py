"""Tracking records, their persistence, and the run lock."""
