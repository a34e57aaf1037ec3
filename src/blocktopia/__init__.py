"""Blocktopia: a 10x10 block puzzle engine.

Place three pieces at a time, clear full rows and columns, and keep going
until nothing fits.
"""

__version__ = "0.1.0"
