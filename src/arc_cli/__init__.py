"""arc-cli: command-line client for an ensicoin node's gRPC interface."""

__version__ = "0.1.0"
