"""Adapters for the external content store and tag reader."""
