"""
Ledger App - Split Events and Wallet Settlement

Owns the financial invariants of bill splitting: a split event's
participant amounts always sum to its total, a wallet balance never goes
negative, and every balance change is paired with exactly one immutable
transaction row.

Architecture:
- Models: SplitEvent, Participant, Wallet, Transaction
- Services: split management, share payment, wallet operations
- Views: RESTful API with ViewSets (thin HTTP handlers only)
"""
