"""Query layer over stored rows.

This package evaluates MongoDB-style predicates against rows and
reshapes matching rows into labeled series.
"""
