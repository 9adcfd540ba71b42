"""Collaborators the core runs against: in-memory store and event bus."""
