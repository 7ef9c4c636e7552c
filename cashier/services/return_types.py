"""
Return Types
Request values, result values and the error taxonomy for return processing.

Business failures are returned, not raised: the service hands back a
ReturnOutcome carrying either the created Return or exactly one ReturnError,
and the caller decides how to surface it.
"""

from dataclasses import dataclass, field
from typing import List, Optional


class ReturnError:
    """Base class for fatal return outcomes"""

    code = 'return_error'
    http_status = 400

    def __init__(self, message: str):
        self.message = message

    def to_dict(self):
        return {'code': self.code, 'error': self.message}

    def __repr__(self):
        return f'<{type(self).__name__} {self.message!r}>'


class ValidationError(ReturnError):
    """Malformed input, detected before any transaction is opened"""

    code = 'validation_error'
    http_status = 400

    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(message)
        self.field_name = field_name

    def to_dict(self):
        data = super().to_dict()
        if self.field_name:
            data['field'] = self.field_name
        return data


class NotFound(ReturnError):
    """Referenced sale or product does not exist"""

    code = 'not_found'
    http_status = 404


class NotEligible(ReturnError):
    """Return window elapsed or the sale was already returned"""

    code = 'not_eligible'
    http_status = 409


class OverReturn(ReturnError):
    """Requested quantity exceeds what was purchased"""

    code = 'over_return'
    http_status = 422

    def __init__(self, message: str, product_id: int, product_name: str):
        super().__init__(message)
        self.product_id = product_id
        self.product_name = product_name

    def to_dict(self):
        data = super().to_dict()
        data['product_id'] = self.product_id
        data['product_name'] = self.product_name
        return data


class NothingToReturn(ReturnError):
    """No requested product was sold on the sale, so no return lines remain"""

    code = 'nothing_to_return'
    http_status = 422


class ReturnNumberUnavailable(RuntimeError):
    """No unused return number could be generated within the retry budget"""


@dataclass
class Anomaly:
    """Non-fatal condition recorded while processing a return"""

    product_id: int
    message: str
    batch_id: Optional[int] = None

    def to_dict(self):
        return {'product_id': self.product_id, 'batch_id': self.batch_id, 'message': self.message}


@dataclass(frozen=True)
class ReturnLine:
    """One requested product and the quantity to take back"""

    product_id: int
    quantity: int


@dataclass(frozen=True)
class ReturnRequest:
    sale_id: int
    items: List[ReturnLine]
    reason: Optional[str] = None


@dataclass(frozen=True)
class Allocation:
    """Quantity taken back from a single sale line"""

    sale_item: object
    quantity: int


@dataclass(frozen=True)
class EligibilityStatus:
    has_been_returned: bool
    is_expired: bool

    @property
    def can_be_returned(self):
        return not self.has_been_returned and not self.is_expired

    def to_dict(self):
        return {
            'has_been_returned': self.has_been_returned,
            'is_expired': self.is_expired,
        }


@dataclass
class ReturnOutcome:
    """Result of ReturnService.process_return"""

    return_record: Optional[object] = None
    error: Optional[ReturnError] = None
    anomalies: List[Anomaly] = field(default_factory=list)

    @property
    def ok(self):
        return self.error is None and self.return_record is not None
