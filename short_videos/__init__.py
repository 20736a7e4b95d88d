"""Short video media + AI enrichment pipeline."""

__version__ = "1.0.0"
