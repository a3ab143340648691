"""Assemblage similarity networks and data-loss experiments"""

__version__ = "0.1.0"
