"""Session messenger config records, community URLs and XEd25519 signatures."""

__version__ = "0.1.0"