"""
Forex trading simulator.

Application package root. This is a modular monolith using
hexagonal architecture (ports & adapters) with domain-driven design.

Bounded contexts:
    - trading: Accounts, multi-currency wallets, order execution, trade history.
    - market: Rate polling, technical indicators, recommendations, live streaming.

Layers:
    - domain: Pure business logic, entities, ports (ABCs), errors.
    - application: Use cases, DTOs, orchestration.
    - infrastructure: Adapters (DB, HTTP clients, scheduler) implementing domain ports.
    - interfaces: FastAPI routers, Pydantic schemas, WebSocket/SSE endpoints.
    - core: Settings and the composition root.
    - shared: Cross-cutting concerns (errors, security, logging).
"""
