"""Recurring dollar-cost-average swap engine for a connected wallet."""

__version__ = "0.1.0"
