"""Clients for hosted services."""
