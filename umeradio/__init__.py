"""Ume Radio: a genre-rotating radio station for a Discord voice channel."""

__version__ = "1.0.0"
