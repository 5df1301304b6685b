"""
Scheduled collector for kwork seller dashboard metrics.
"""

__version__ = "1.0.0"
