"""
bidhouse - online auction marketplace core
"""
__version__ = "1.0.0"
