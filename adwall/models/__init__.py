from adwall.models.user import User
from adwall.models.ad import Ad
from adwall.models.transaction import Transaction

__all__ = ["User", "Ad", "Transaction"]
