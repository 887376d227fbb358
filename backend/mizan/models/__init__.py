from .sequences import DocumentCounter
from .reference import (
    Country, Province, CustomerType, Customer, ProductCategory, UnitOfMeasure,
    Product, WarehouseType, Warehouse, Employee,
)
from .sales import (
    Quotation, QuotationItem, CashSalesInvoice, CashSalesInvoiceItem,
    CreditSalesInvoice, CreditSalesInvoiceItem,
)
from .inventory import (
    WarehouseTransaction, WarehouseTransactionItem, WarehouseStock,
    PurchaseOrder, PurchaseOrderItem, DispatchOrder, DispatchOrderItem,
)
from .treasury import TreasuryVoucher, TreasuryBalance

__all__ = [
    'DocumentCounter',
    'Country', 'Province', 'CustomerType', 'Customer', 'ProductCategory', 'UnitOfMeasure',
    'Product', 'WarehouseType', 'Warehouse', 'Employee',
    'Quotation', 'QuotationItem', 'CashSalesInvoice', 'CashSalesInvoiceItem',
    'CreditSalesInvoice', 'CreditSalesInvoiceItem',
    'WarehouseTransaction', 'WarehouseTransactionItem', 'WarehouseStock',
    'PurchaseOrder', 'PurchaseOrderItem', 'DispatchOrder', 'DispatchOrderItem',
    'TreasuryVoucher', 'TreasuryBalance',
]
