"""packmatch: offline situational matching over downloaded city packs."""

__version__ = "0.1.0"
