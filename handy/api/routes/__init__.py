"""API routes module."""

# Routes are imported individually in app.py
__all__ = ["auth", "reports", "redeem", "notifications", "admin", "health"]
