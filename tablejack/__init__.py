"""
tablejack: a single-table, single-player blackjack round engine.
"""

__version__ = "0.1.0"
