"""Rolling swap history and aggregate totals."""
