"""
Store Services credential lifecycle: service access tokens and user store ids.
"""
