"""ecopoints - async client for the EcoPoints API."""

__version__ = "0.1.0"
