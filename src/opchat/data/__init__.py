"""Data layer for opchat - prices, gas, chain submission, storage and caching."""

from opchat.data.cache import Cache
from opchat.data.chain import DemoSubmitter, GasEstimator, Submitter, TransactionResult
from opchat.data.prices import PriceData, PriceService
from opchat.data.storage import StorageService, UploadFile

__all__ = [
    "Cache",
    "DemoSubmitter",
    "GasEstimator",
    "Submitter",
    "TransactionResult",
    "PriceData",
    "PriceService",
    "StorageService",
    "UploadFile",
]
