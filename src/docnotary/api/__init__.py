"""HTTP API for the docnotary registry."""
