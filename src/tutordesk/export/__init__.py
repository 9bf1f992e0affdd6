"""Report file renderers."""

from tutordesk.export import document, spreadsheet

__all__ = ["document", "spreadsheet"]
