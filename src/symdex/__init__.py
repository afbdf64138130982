"""symdex: source-code symbol index with safe, coordinated reindexing."""

__version__ = "0.4.0"
