from .catalog import Warehouse, Customer, Fabric, Color, Product
from .inventory import ProductWarehouse, DocumentSequence, Inventory
from .invoices import Invoice, InvoiceItem, INVOICE_STATUS_PENDING, INVOICE_STATUS_PAID, INVOICE_STATUSES
from .refunds import Refund, RefundItem

__all__ = [
    'Warehouse', 'Customer', 'Fabric', 'Color', 'Product',
    'ProductWarehouse', 'DocumentSequence', 'Inventory',
    'Invoice', 'InvoiceItem', 'INVOICE_STATUS_PENDING', 'INVOICE_STATUS_PAID', 'INVOICE_STATUSES',
    'Refund', 'RefundItem',
]
