"""Repeat2Me - record, trim and loop spoken affirmations."""

__version__ = "0.1.0"
