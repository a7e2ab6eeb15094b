"""
Expense Assistant - Source Package

A chat-based expense logging assistant. Users send "[amount] [item]"
messages, photograph receipts, set daily limits and receive scheduled
digests, all behind a shared access code.

DESIGN PRINCIPLES:
1. The conversation core is transport-agnostic
2. A malformed command argument gets exactly one clarifying reply
3. Ledgers are append-only except for "clear today"
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Assistant Team"
