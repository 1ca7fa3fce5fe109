"""
Test Suite Module

This module contains all tests for the incident sentiment pipeline,
including unit tests and end-to-end pipeline tests.
"""

__version__ = "0.1.0"
__author__ = "Incident Sentiment Team"
