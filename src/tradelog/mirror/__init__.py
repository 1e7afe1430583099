"""Remote tabular collaborators for the spreadsheet mirror.

InMemorySheetBook   Local implementation of the collaborator contract
GoogleSheetsClient  Google Sheets v4 REST client over httpx
"""

from .a1 import A1Range, column_letter, parse_a1
from .google_sheets import GoogleSheetsClient
from .memory import InMemorySheetBook

__all__ = [
    "A1Range",
    "GoogleSheetsClient",
    "InMemorySheetBook",
    "column_letter",
    "parse_a1",
]
