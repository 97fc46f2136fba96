"""Pick one-time passcodes out of recently received email."""

__all__ = ["__version__"]

__version__ = "0.1.0"
