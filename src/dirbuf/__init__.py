"""
dirbuf - edit directories as text.
"""

__version__ = "0.1.0"
