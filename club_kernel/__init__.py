"""
Club Kernel - membership accounts for a club.

Records members, posts monthly membership fees and reconciles bank statement
lines against member accounts:
- Single balance-mutation path (ledger service)
- Idempotent fee runs via per-member watermarks
- Split/overflow allocation of shared bank accounts
- Per-line atomic imports with a duplicate guard
"""

__version__ = "0.1.0"
