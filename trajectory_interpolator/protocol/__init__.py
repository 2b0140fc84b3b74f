"""On-disk formats for trajectory requests and responses."""
