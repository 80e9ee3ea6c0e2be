"""Terminal chat client with persistent conversation history."""

__version__ = "0.1.0"
