"""
Relative registry - dependents managed by a primary account.
"""
