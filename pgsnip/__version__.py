"""Version of the pgsnip package."""
__version__ = "0.3.0"
