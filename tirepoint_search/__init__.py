"""TirePoint vehicle selector and tire search."""

__version__ = "1.0.0"
