"""Shell-style variable expansion, option parsing and output formatting."""

__version__ = "0.1.0"
__all__ = ["engine", "formatter", "options"]