"""dcap - typed, content-addressed document catalogs."""

__version__ = "0.1.0"
