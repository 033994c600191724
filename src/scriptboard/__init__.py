"""Scriptboard: AI video scripts, storyboards and project reports."""

__version__ = "0.1.0"
