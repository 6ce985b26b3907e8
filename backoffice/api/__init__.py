"""HTTP API for the back-office platform."""
