"""authgate — account and token service.

Username/password accounts, short-lived access tokens, and a single
rotating refresh token per user, behind an API-key gate.
"""

__version__ = "0.1.0"
