"""HTML presentation layer."""
