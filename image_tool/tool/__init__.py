"""Command line interface for image-tool."""
