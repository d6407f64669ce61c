"""Pydantic schemas for configuration files and tracking state."""
