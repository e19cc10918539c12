"""
Core utilities: configuration, logging, constants, error taxonomy and metrics.
"""
