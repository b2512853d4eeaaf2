"""Friend request and friendship state machine on a FalkorDB property graph."""

__version__ = "0.1.0"
