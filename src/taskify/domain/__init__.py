"""Domain layer: aggregates, domain events and value objects.

Aggregates enforce their own invariants and queue events; they never
log, persist or dispatch.  Rules spanning two aggregates live in
``taskify.application``.
"""
