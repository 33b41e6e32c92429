"""
Invoice Kernel

A dual-approval invoice workflow with:
- Independent Accounts and Stock sign-off
- Atomic finalization (stock deduction + ledger posting)
- Append-only revenue/royalty ledger
- Full-state persistence after every mutation
- Best-effort external synchronization of finalized invoices
"""

__version__ = "0.1.0"
