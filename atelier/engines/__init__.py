"""Engines layer - progression and submission logic."""
