"""Dependency injection singletons for FarmTrace."""

from farmtrace.common.config import get_settings
from farmtrace.common.database import DatabaseManager
from farmtrace.ledger.service import LedgerService
from farmtrace.products.service import ProductService
from farmtrace.users.service import UserService

_db: DatabaseManager | None = None
_products: ProductService | None = None
_users: UserService | None = None
_ledger: LedgerService | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_product_service() -> ProductService:
    global _products
    if _products is None:
        _products = ProductService()
    return _products


def get_user_service() -> UserService:
    global _users
    if _users is None:
        _users = UserService()
    return _users


def get_ledger_service() -> LedgerService:
    global _ledger
    if _ledger is None:
        _ledger = LedgerService(get_product_service())
    return _ledger


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _products, _users, _ledger
    _db = None
    _products = None
    _users = None
    _ledger = None
