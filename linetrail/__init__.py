"""Lazily indexed, bidirectional line access to large and growing logs."""

__version__ = "0.1.0"