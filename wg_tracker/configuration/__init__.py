"""Configuration loading, validation, and the command line interface."""
