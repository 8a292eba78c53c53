"""
pageprobe/utils/__init__.py

Shared utilities: logging, exceptions, and in-page JavaScript snippets.
"""
