"""Relational storage: ORM models and engine/session management."""
