"""
Health report ledger - doctor-authored clinical records.
"""
