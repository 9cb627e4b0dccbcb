"""Short links with click counting."""

__version__ = "1.0.0"
