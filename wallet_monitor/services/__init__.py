"""Services of the balance monitoring core."""
