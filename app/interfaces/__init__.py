"""
Interfaces layer package.

FastAPI routers for auth, trading, health and real-time streaming,
with their Pydantic schemas and dependency wiring. Routes call use
cases and return responses; no business logic belongs here.
"""
