"""Dependency sources: one adapter per package ecosystem."""
