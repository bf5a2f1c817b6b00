"""Runtime daemon: context detection, mTLS listener, log channels, OCI bundles and graceful shutdown."""

__version__ = "0.1.0"