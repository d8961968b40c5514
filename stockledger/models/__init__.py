import importlib

from stockledger.models.history import ProductHistory
from stockledger.models.product import Product
from stockledger.models.user import User


def import_all_models() -> None:
    for module_name in (
        "stockledger.models.history",
        "stockledger.models.product",
        "stockledger.models.user",
    ):
        importlib.import_module(module_name)


__all__ = [
    "Product",
    "ProductHistory",
    "User",
    "import_all_models",
]
