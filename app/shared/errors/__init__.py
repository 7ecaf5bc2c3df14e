"""
Shared error handling package.

Translates domain errors into JSON error responses with stable
status codes.
"""
