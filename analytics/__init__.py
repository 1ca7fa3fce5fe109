"""
Analytics module for incident-notification sentiment aggregation.

This module provides functionality to aggregate lexicon-joined tokens into
per-group sentiment statistics and to compare two groups statistically.
"""

__version__ = "1.0.0"
