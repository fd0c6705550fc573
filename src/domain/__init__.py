"""Alliance rating domain modules."""
