"""
regsnap - Registry Snapshots.

Reads a subtree of a hierarchical key/value registry into an in-memory
tree for comparison, export or replay.
"""

__version__ = "0.1.0"

__all__ = []
