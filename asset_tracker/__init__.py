"""
Asset Tracker - Source Package

A small personal-finance library for investors: track assets per user,
work out the yearly Zakat obligation and keep a record of the linked
bank account.

DESIGN PRINCIPLES:
1. One flat file per user, rewritten atomically on every change
2. Malformed records are skipped and reported, never guessed at
3. Input problems are reported, never silently corrected
4. Every change to a user's assets is auditable
"""

__version__ = "1.0.0"
__author__ = "Asset Tracker Team"
