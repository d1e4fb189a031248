"""Deterministic development seed data."""
