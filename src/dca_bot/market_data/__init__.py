"""Token prices and display quotes."""
