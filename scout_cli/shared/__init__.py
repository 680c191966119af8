"""Shared infrastructure for the scout CLI tools."""
