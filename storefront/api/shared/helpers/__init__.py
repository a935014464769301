"""Shared API helpers."""
