"""Errors raised by the ordering domain beyond Protean's built-in set."""

from protean.exceptions import InvalidStateError


class ConflictError(InvalidStateError):
    """The request clashes with current stock or coupon state.

    Raised before anything is persisted; maps to 409.
    """
