"""Upstream flight data providers."""
