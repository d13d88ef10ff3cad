"""
Central version constant for mold.
"""

__version__ = "0.6.0"
