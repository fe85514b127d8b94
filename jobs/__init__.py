"""Background scheduling for the balance monitor."""
