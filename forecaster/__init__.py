"""Self-calibrating gameweek forecasting pipeline."""

__version__ = "0.1.0"
