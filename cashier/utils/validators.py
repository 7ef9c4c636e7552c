"""
Request Validators
Turn raw request payloads into typed values for the service layer
"""

from datetime import datetime

from cashier.services.return_types import ReturnLine, ReturnRequest, ValidationError


def _as_positive_int(value):
    """Return value as an int >= 1, or None if it is not one"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 1 else None
    # int() parses decimal digits only; isdigit() also admits superscripts
    if isinstance(value, str) and value.strip().isdecimal():
        number = int(value.strip())
        return number if number >= 1 else None
    return None


def parse_return_request(data, max_reason_length=255):
    """
    Validate a return payload

    Expected shape:
        {
            "sale_id": 12,
            "items": [{"product_id": 3, "quantity": 2}, ...],
            "reason": "optional text"
        }

    Returns:
        Tuple of (ReturnRequest, ValidationError)
    """
    if not isinstance(data, dict):
        return None, ValidationError('Request body must be a JSON object.')

    sale_id = _as_positive_int(data.get('sale_id'))
    if sale_id is None:
        return None, ValidationError('A valid sale_id is required.', 'sale_id')

    items = data.get('items')
    if not isinstance(items, list) or not items:
        return None, ValidationError('items must be a non-empty list.', 'items')

    lines = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            return None, ValidationError(f'items[{index}] must be an object.', 'items')

        product_id = _as_positive_int(item.get('product_id'))
        if product_id is None:
            return None, ValidationError(f'items[{index}].product_id is required.', 'product_id')

        quantity = _as_positive_int(item.get('quantity'))
        if quantity is None:
            return None, ValidationError(
                f'items[{index}].quantity must be an integer of at least 1.', 'quantity'
            )

        lines.append(ReturnLine(product_id=product_id, quantity=quantity))

    reason = data.get('reason')
    if reason is not None:
        if not isinstance(reason, str):
            return None, ValidationError('reason must be text.', 'reason')
        reason = reason.strip() or None
        if reason and len(reason) > max_reason_length:
            return None, ValidationError(
                f'reason may not be longer than {max_reason_length} characters.', 'reason'
            )

    return ReturnRequest(sale_id=sale_id, items=lines, reason=reason), None


def parse_date(value):
    """Parse a YYYY-MM-DD string; returns (date, error)"""
    if not value:
        return None, None
    try:
        return datetime.strptime(value, '%Y-%m-%d').date(), None
    except ValueError:
        return None, ValidationError('date must use the YYYY-MM-DD format.', 'date')
