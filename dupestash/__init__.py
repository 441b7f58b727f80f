"""
Library and command-line utilities to quarantine duplicate files by content.
"""

__version__ = "0.1.0"
