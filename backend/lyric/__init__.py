"""
Lyric: song catalogue and lyric-chord backend.
"""

__version__ = "0.1.0"
