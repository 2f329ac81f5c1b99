"""JSON control API over a DCAScheduler."""
