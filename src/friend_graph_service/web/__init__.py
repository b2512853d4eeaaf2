"""HTTP interface for the friend graph service."""
