"""Adapters implementing the domain ports."""
