"""Geometry, pixel, metric and payload helpers."""
