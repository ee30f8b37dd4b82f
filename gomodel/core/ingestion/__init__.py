"""Directory scanning into parsed Go files."""

from .scanner import Files, scan_for_files

__all__ = ["Files", "scan_for_files"]
