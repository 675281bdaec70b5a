from .catalog import Product, WeeklyPrice
from .customers import Customer
from .receipts import Receipt, ReceiptLine, Payment, ReceiptSequence
from .purchases import Supplier, Purchase, PurchaseLine, PurchasePayment, PurchaseSequence
from .profit import Deduction, PartnerPurchase, PartnerBalanceConfig, PartnerCapital

__all__ = [
    'Product', 'WeeklyPrice',
    'Customer',
    'Receipt', 'ReceiptLine', 'Payment', 'ReceiptSequence',
    'Supplier', 'Purchase', 'PurchaseLine', 'PurchasePayment', 'PurchaseSequence',
    'Deduction', 'PartnerPurchase', 'PartnerBalanceConfig', 'PartnerCapital',
]
