"""Cache, comparison and data source services."""
