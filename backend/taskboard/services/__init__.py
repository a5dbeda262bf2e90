"""Mutation services: validation, ordering, persistence and audit per operation."""
