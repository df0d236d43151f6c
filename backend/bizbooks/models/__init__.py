from .sales import Sale
from .expenses import Expense
from .inventory import InventoryItem
from .settings import Setting

__all__ = [
    'Sale',
    'Expense',
    'InventoryItem',
    'Setting',
]
