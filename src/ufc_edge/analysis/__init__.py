"""
Fighter analysis: stat comparison, style classification and common-opponent analysis.
"""
