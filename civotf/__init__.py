"""Data sources and resources for Civo instance sizes, SSH keys, volumes and volume attachments."""

__version__ = "0.1.0"