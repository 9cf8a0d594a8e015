"""Parley: paced conversational load generator for chat endpoints."""

__version__ = "0.1.0"
