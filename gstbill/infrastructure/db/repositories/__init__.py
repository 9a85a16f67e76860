from .filing_repository import DetailedFilingRepository, SummaryFilingRepository
from .invoice_repository import InvoiceRepository

__all__ = [
    "InvoiceRepository",
    "DetailedFilingRepository",
    "SummaryFilingRepository",
]
