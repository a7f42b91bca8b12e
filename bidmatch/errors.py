"""
Error types for bidmatch.

Domain code raises these directly. The dictionary import/export use cases
convert them into structured failure responses; everything else lets them
propagate.
"""


class BidMatchError(Exception):
    """Base class for all bidmatch domain errors."""
    pass


class FormatError(BidMatchError):
    """Malformed version string, document, or profile shape."""
    pass


class ValidationError(BidMatchError):
    """Empty or oversized names, bad weights, missing required fields."""
    pass


class NotFoundError(BidMatchError):
    """Unknown skill, canonical name, bid, or dictionary version."""
    pass


class ConflictError(BidMatchError):
    """Duplicate canonical, variation shadowing, or version conflict."""
    pass
