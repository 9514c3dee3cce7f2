"""
Health camp backend: accounts, relatives, doctors and health reports.
"""
__version__ = "1.0.0"
