"""
Environment-driven defaults for the path-based helpers.
"""
