"""
Shared helpers for name matching and store data coercion.
"""
