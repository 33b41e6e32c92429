"""Database infrastructure for the SQL persistence adapter."""
