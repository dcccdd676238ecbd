"""
HTML render service: HTML documents to PDF or PNG through headless Chromium.
"""

__version__ = "1.0.0"
