"""Service layer for the docnotary registry."""
