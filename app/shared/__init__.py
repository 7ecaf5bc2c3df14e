"""
Shared module package.

Cross-cutting concerns used by every bounded context:
- Domain error to HTTP mapping
- Secure headers and rate limiting
- Logging configuration
"""
