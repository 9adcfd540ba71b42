"""Shared kernel: enums, errors, ids, clock, config and protocols."""
