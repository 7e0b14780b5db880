"""docingest: resilient document to embedding ingestion."""

__version__ = "0.1.0"
