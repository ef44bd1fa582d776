"""EC2 Driver Updater — keep AWS Windows drivers current."""

__version__ = "1.0.0"
