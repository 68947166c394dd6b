"""
Market value, parlay composition and report structures.
"""
