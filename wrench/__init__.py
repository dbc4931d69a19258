"""Syntax tree, type checker, interpreter and streaming pipes for the wrench table language."""

__version__ = "0.1.0"