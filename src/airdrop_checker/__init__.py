"""
airdrop-checker: Integration layer for the Airdrop Checker app.

Validates, throttles, stores and announces user-submitted airdrop
suggestions, backed by a hosted Supabase store and EmailJS delivery.
"""

__version__ = "0.1.0"
