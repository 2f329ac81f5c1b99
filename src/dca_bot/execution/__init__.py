"""Swap services and the per-attempt executor."""
