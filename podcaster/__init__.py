"""Polyglot Podcaster API."""
