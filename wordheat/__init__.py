"""
WordHeat
Semantic word-guessing game service
"""

__version__ = "1.0.0"
