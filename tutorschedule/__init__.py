"""
Availability and scheduling conflict resolution for a tutoring center.
"""

__version__ = "0.3.0"
