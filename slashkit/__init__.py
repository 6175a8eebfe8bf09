"""Discord application commands declared as plain Python functions, with a REST client and an interaction handler."""

__version__ = "0.1.0"