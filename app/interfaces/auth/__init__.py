"""Account signup and login routes."""
