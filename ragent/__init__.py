"""Conversational retrieval-and-tool-use engine."""

__version__ = "0.1.0"
