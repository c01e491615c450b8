"""Collectors mapping upstream feed records to core models."""
