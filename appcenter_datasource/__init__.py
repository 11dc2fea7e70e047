"""
App Center data source - queries App Center analytics and returns tabular frames
"""

__version__ = "1.0.0"
