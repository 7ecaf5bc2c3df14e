"""
Infrastructure layer package.

Contains concrete implementations (adapters) of the ports
defined in the domain layer: the SQL database, the exchange-rate
and predictor HTTP services, token signing and the polling scheduler.
"""
