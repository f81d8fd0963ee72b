from .json_store import JsonKeyValueStore
from .ledger_store import LEDGER_KEY, CorruptedLedgerError, LedgerStore

__all__ = ["JsonKeyValueStore", "LedgerStore", "CorruptedLedgerError", "LEDGER_KEY"]
