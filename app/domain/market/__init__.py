"""
Market data bounded context: domain layer.

Rolling price histories, technical indicators, and the composite
market update streamed to subscribers. Pure computation, no IO.
"""
