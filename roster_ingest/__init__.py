"""Student roster ingestion: CSV / workbook -> class-resolved, deduplicated student records."""

__version__ = "0.1.0"
