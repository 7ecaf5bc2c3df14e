"""Configuration and composition root."""
