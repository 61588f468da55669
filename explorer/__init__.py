"""Read-through metadata cache and comparison for heterogeneous data sources."""
