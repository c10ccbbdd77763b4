"""
TOPAZ 2.0 dance competition scoring
"""
__version__ = "2.0.0"
