"""Files shipped with image-tool."""
