"""smartconfig: resolve settings from a store by name, environment, version and custom dimensions."""

__version__ = "0.1.0"
