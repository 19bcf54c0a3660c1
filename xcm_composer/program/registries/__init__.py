"""Registries of known chains and assets."""
