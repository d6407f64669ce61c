"""Files tracking issues for CSS Working Group resolutions."""

__version__ = "0.1.0"
