"""Document ingestion, OCR fallback and rule-based verification."""

__version__ = "0.1.0"
