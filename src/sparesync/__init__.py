"""sparesync - Sync SpareBank 1 transactions into Actual Budget."""

from sparesync.actual import ActualClient
from sparesync.mapper import map_transaction
from sparesync.sparebank1 import BankClient
from sparesync.sync import Syncer

__version__ = "0.1.0"
__all__ = ["ActualClient", "BankClient", "Syncer", "map_transaction"]
