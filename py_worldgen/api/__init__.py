"""HTTP query service."""
