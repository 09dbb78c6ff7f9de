"""Version information for pristine."""
__version__ = "0.1.0"
