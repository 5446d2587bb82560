"""Row sources for the data store.

This module reads raw rows from local files or S3 objects.
It satisfies the store's async "fetch rows for a key" contract.
"""
