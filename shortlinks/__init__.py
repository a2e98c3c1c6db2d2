"""Short link service: owned short codes that redirect to long URLs."""

__version__ = "1.0.0"
