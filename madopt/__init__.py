"""Mean Absolute Deviation (MAD) portfolio optimisation on scenario returns."""

__version__ = "0.1.0"
