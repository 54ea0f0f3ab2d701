"""Street tree census backend."""

__version__ = "0.1.0"
