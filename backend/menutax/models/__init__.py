from .menu import MenuCategory, MenuItem, MenuItemOptionGroup, MenuItemOption
from .orders import Order, DailyOrderSequence, ORDER_STATUSES
from .reports import TaxReport, REPORT_TYPES

__all__ = [
    'MenuCategory', 'MenuItem', 'MenuItemOptionGroup', 'MenuItemOption',
    'Order', 'DailyOrderSequence', 'ORDER_STATUSES',
    'TaxReport', 'REPORT_TYPES',
]
