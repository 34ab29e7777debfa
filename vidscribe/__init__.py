"""Resumable pipeline that turns a directory of videos into ranked descriptions."""

__version__ = "0.1.0"
