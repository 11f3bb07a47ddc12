"""Parsers package.

Ecosystem-specific fetchers, resolvers and manifest readers live here.
"""
