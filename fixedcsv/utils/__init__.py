"""
Low-level helpers shared across modules (line buffer).
"""
