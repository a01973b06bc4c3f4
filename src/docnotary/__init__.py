"""Document notarization registry with presigned authorization."""

__version__ = "0.1.0"
