"""Agora community API."""
