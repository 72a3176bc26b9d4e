"""Process-wide managers: logging and shutdown coordination."""
