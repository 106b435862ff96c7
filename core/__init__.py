"""
Core shared components for the booking engine.

This package provides the exception hierarchy and the DRF exception handler
used across the booking apps.
"""

__version__ = "1.0.0"
