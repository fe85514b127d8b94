"""Wallet balance caching, monitoring and notification core."""
