"""
Alexta - chat messages enriched with language detection, translation and summaries
"""

__version__ = "0.1.0"
