"""Engines - evidence, reporting and templates."""
