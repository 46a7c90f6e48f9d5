"""
Cosigner callback handler service.
"""
