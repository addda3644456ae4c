"""
Farm Passport client: scan produce and receipts, claim farm badges.
"""

__version__ = "1.0.0"
