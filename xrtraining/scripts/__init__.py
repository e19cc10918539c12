"""
Maintenance scripts (run with python -m).
"""
