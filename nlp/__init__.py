"""
Natural Language Processing Module

This module handles loading incident-notification records, tokenizing their
text with stop-word removal, and joining tokens against sentiment lexicons.
"""

__version__ = "0.1.0"
__author__ = "Incident Sentiment Team"
