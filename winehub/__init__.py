"""WineHub: content management API for wineries, wines and vintages."""

__version__ = "0.1.0"
