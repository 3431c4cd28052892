"""Scripted, human-like browser sessions against YouTube or a website."""

__version__ = "0.1.0"
