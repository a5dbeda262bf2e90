"""Collaborative kanban board API."""
