"""mysql-scout: read-only MySQL query, schema, and discovery tools."""

__version__ = "0.1.0"
