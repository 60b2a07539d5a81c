"""Shared infrastructure used by every command."""
