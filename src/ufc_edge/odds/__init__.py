"""
Bookmaker odds lookups.
"""
