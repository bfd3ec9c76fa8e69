"""apidelta: structural diff and breaking-change categorization of API graphs."""

__version__ = "0.1.0"
