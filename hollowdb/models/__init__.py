"""SQLAlchemy models for hollowdb."""
