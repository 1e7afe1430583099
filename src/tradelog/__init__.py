"""Personal trading journal with spreadsheet mirroring.

Keeps a local ledger of discretionary trades, derives per-trade metrics,
and mirrors the ledger and its tag taxonomy to a remote spreadsheet
using an upsert/append strategy that never deletes remote rows.
"""

__version__ = "0.1.0"
