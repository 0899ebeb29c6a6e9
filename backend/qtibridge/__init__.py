"""QTI Bridge: tabular question data to QTI XML and normalized JSON."""

__version__ = "1.0.0"
