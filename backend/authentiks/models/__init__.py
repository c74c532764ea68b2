from .accounts import Company, Brand, User, SessionToken, OtpChallenge
from .orders import Order, OrderHistory
from .qr_codes import QrCode
from .scans import Scan, Report
from .billing import (
    CreditTransaction,
    PricePlan,
    BillingSetting,
    AdditionalCharge,
    Coupon,
    Payment,
    TestAccount,
)
from .forms import FormConfig

__all__ = [
    'Company', 'Brand', 'User', 'SessionToken', 'OtpChallenge',
    'Order', 'OrderHistory',
    'QrCode',
    'Scan', 'Report',
    'CreditTransaction', 'PricePlan', 'BillingSetting', 'AdditionalCharge',
    'Coupon', 'Payment', 'TestAccount',
    'FormConfig',
]
