"""Database repository helpers."""

from repositories.matches import ensure_schema, fetch_alliance_matches

__all__ = ["ensure_schema", "fetch_alliance_matches"]
