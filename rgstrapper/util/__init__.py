"""
rgstrapper utility package: error kinds, name sanitization and subprocess helpers.
"""
