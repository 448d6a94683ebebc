"""
winstage — stage cross-compiled Windows binaries for distribution.
"""

__version__ = "0.1.0"
