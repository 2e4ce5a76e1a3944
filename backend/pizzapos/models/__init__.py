from .auth import User
from .customers import Client
from .catalog import Product, ProductAddon
from .inventory import Ingredient, InventoryMovement
from .sales import Sale, SaleItem, SaleItemAddon, OrderSequence
from .registers import CashRegister, CashMovement, CashTicket
from .audit import AuditLog
from .settings import SystemConfig

__all__ = [
    'User',
    'Client',
    'Product', 'ProductAddon',
    'Ingredient', 'InventoryMovement',
    'Sale', 'SaleItem', 'SaleItemAddon', 'OrderSequence',
    'CashRegister', 'CashMovement', 'CashTicket',
    'AuditLog',
    'SystemConfig',
]
