"""type3 -- Express backend scaffolding generator."""

__version__ = "0.1.0"
