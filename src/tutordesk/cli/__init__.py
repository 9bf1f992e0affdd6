"""Command-line interface for tutordesk."""
