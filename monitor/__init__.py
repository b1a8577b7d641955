"""
Browser monitor - capture browser URLs and searches, scrape what was visited.
"""

__version__ = "0.1.0"
