"""HTTP security concerns: secure headers and rate limiting."""
