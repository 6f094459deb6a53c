"""HTTP API for quotes."""
