"""Monthly and season bonus points."""
