"""
Application layer package.

Contains use cases that orchestrate domain logic. Request-driven use
cases are single classes with an `execute` method; the market pipeline
adds the poller and the subscriber broadcaster.
This layer depends on domain ports, never on infrastructure.
"""
