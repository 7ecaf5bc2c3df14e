"""
Trading bounded context: domain layer.

This module contains all domain logic for the trading context:
- Multi-currency wallets and their fixed currency schema
- Per-user serialized wallet mutation (WalletLedger)
- Immutable trade records and history analytics
- User accounts and authenticated principals
"""
