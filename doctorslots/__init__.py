"""
doctorslots - doctor slot availability for hospital dashboards.
"""

__version__ = "0.1.0"
