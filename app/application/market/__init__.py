"""
Application layer for the market data bounded context.

The rate poller, the subscriber broadcaster, and historical rate lookups.
"""
