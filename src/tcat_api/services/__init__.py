"""Upstream sources, token handling, snapshot cache and refresh loop."""
