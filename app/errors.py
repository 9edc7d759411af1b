# app/errors.py
"""Failure kinds raised by the marketplace core.

Routes never build HTTP errors themselves: `app.main` maps each kind to a
status code through `status_code`.
"""


class MarketplaceError(Exception):
    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MarketplaceError):
    kind = "validation_error"
    status_code = 400


class NoFieldsError(ValidationError):
    kind = "no_fields"

    def __init__(self, message: str = "No fields to update"):
        super().__init__(message)


class NotFoundError(MarketplaceError):
    kind = "not_found"
    status_code = 404


class AuthorizationError(MarketplaceError):
    kind = "unauthorized"
    status_code = 403


class AuthenticationRequired(AuthorizationError):
    kind = "unauthenticated"
    status_code = 401

    def __init__(self, message: str = "Caller identity required"):
        super().__init__(message)


class BusinessRuleError(MarketplaceError):
    kind = "business_rule"
    status_code = 409


class SelfBidError(BusinessRuleError):
    kind = "self_bid"


class BiddingClosedError(BusinessRuleError):
    kind = "bidding_closed"


class BidBelowFloorError(BusinessRuleError):
    kind = "bid_below_floor"


class DependencyError(MarketplaceError):
    kind = "dependency_error"
    status_code = 502


class ConcurrentUpdateError(DependencyError):
    kind = "concurrent_update"
    status_code = 409


class PredicateBudgetExceeded(DependencyError):
    kind = "predicate_too_large"


class UnsupportedPredicate(DependencyError):
    kind = "unsupported_predicate"
