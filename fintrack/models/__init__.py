from .user import User
from .transaction import Transaction

__all__ = ["User", "Transaction"]
