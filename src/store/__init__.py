"""In-memory dataset store.

This package caches fetched rows per key, runs them through the row
pipeline, and notifies subscribers when datasets change.
"""
