"""Pydantic request/response schemas, kept separate from the ORM models."""
