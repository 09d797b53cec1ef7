"""Voice interaction core for the navigation assistant."""
