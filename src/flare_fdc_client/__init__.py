"""Client kit for the Flare Data Connector."""

__version__ = "0.1.0"
