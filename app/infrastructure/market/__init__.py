"""
Infrastructure adapters for the market data bounded context.

HTTP clients for the exchange-rate source and the predictor, and the
scheduler driving periodic polls.
"""
