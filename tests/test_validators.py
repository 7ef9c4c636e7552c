"""
Tests for request validators
"""

import pytest
from datetime import date

from cashier.services.return_types import ReturnLine, ValidationError
from cashier.utils.validators import parse_return_request, parse_date


class TestParseReturnRequest:

    def test_valid_payload(self):
        return_request, error = parse_return_request({
            'sale_id': 7,
            'items': [{'product_id': 3, 'quantity': 2}, {'product_id': '4', 'quantity': '1'}],
            'reason': '  Changed mind  '
        })

        assert error is None
        assert return_request.sale_id == 7
        assert return_request.items == [ReturnLine(3, 2), ReturnLine(4, 1)]
        assert return_request.reason == 'Changed mind'

    def test_blank_reason_is_none(self):
        return_request, error = parse_return_request({
            'sale_id': 1, 'items': [{'product_id': 1, 'quantity': 1}], 'reason': '   '
        })

        assert error is None
        assert return_request.reason is None

    def test_not_a_dict(self):
        return_request, error = parse_return_request(['sale_id', 1])

        assert return_request is None
        assert isinstance(error, ValidationError)

    def test_boolean_is_not_a_quantity(self):
        _, error = parse_return_request({'sale_id': 1, 'items': [{'product_id': 1, 'quantity': True}]})

        assert error.field_name == 'quantity'

    @pytest.mark.parametrize('payload,field', [
        ({'sale_id': '²', 'items': [{'product_id': 1, 'quantity': 1}]}, 'sale_id'),
        ({'sale_id': 1, 'items': [{'product_id': '³', 'quantity': 1}]}, 'product_id'),
        ({'sale_id': 1, 'items': [{'product_id': 1, 'quantity': '²'}]}, 'quantity'),
        ({'sale_id': 1, 'items': [{'product_id': 1, 'quantity': '1.5'}]}, 'quantity'),
        ({'sale_id': 1, 'items': [{'product_id': 1, 'quantity': '-2'}]}, 'quantity'),
    ])
    def test_non_decimal_strings_rejected(self, payload, field):
        return_request, error = parse_return_request(payload)

        assert return_request is None
        assert isinstance(error, ValidationError)
        assert error.field_name == field

    def test_negative_sale_id(self):
        _, error = parse_return_request({'sale_id': -3, 'items': [{'product_id': 1, 'quantity': 1}]})

        assert error.field_name == 'sale_id'

    def test_item_must_be_object(self):
        _, error = parse_return_request({'sale_id': 1, 'items': [5]})

        assert error.field_name == 'items'
        assert 'items[0]' in error.message

    def test_reason_must_be_text(self):
        _, error = parse_return_request({
            'sale_id': 1, 'items': [{'product_id': 1, 'quantity': 1}], 'reason': 42
        })

        assert error.field_name == 'reason'

    def test_reason_length_limit(self):
        payload = {'sale_id': 1, 'items': [{'product_id': 1, 'quantity': 1}], 'reason': 'a' * 11}

        _, error = parse_return_request(payload, max_reason_length=10)

        assert error.field_name == 'reason'
        assert error.to_dict() == {
            'code': 'validation_error',
            'error': 'reason may not be longer than 10 characters.',
            'field': 'reason'
        }


class TestParseDate:

    def test_valid(self):
        assert parse_date('2026-10-18') == (date(2026, 10, 18), None)

    def test_empty(self):
        assert parse_date('') == (None, None)
        assert parse_date(None) == (None, None)

    def test_invalid(self):
        value, error = parse_date('2026-13-01')

        assert value is None
        assert error.field_name == 'date'
