# adwall/core/errors.py
"""Domain errors raised by services and mapped to HTTP responses in server.py."""


class AdWallError(Exception):
    status_code = 500
    code = "error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(AdWallError):
    status_code = 404
    code = "not_found"


class ForbiddenError(AdWallError):
    status_code = 403
    code = "forbidden"


class ValidationFailed(AdWallError):
    status_code = 400
    code = "validation_failed"


class InsufficientFundsError(AdWallError):
    """Owner cannot cover the per-click price; the ad has been paused."""
    status_code = 402
    code = "insufficient_funds"

    def __init__(self, detail: str, ad_id: int, balance, price):
        super().__init__(detail)
        self.ad_id = ad_id
        self.balance = balance
        self.price = price
