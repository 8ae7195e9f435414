"""Join positioned glyphs into lines, paragraphs and tables, and write them as text, JSON or CSV."""

__version__ = "0.1.0"

__all__ = [
    "analysis",
    "document",
    "extractor",
    "geometry",
    "json_output",
    "lines",
    "paragraphs",
    "tables",
    "text_output",
]