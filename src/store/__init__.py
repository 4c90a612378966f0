"""Content store layer.

This module writes loaded records into a destination store.
It exposes connection-scoped content factories and record handles.
"""
