"""Shared configuration, paths, sheet store and the indent core.

Key exports:
    next_reference()   — Next I-NNN indent number from existing numbers
    stock_after()      — Stock level after a requested quantity
    FormContext        — Ledger + indent number snapshot for the form
"""
from .numbering import next_reference, parse_reference, format_reference
from .ledger import stock_after, current_stock_for, parse_quantity
from .session import FormContext
