"""
Fighter data models, stat parsing and the storage interface.
"""
