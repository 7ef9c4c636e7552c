"""
Returns Routes
Cashier-facing endpoints to look up a sale, process a return and list returns
"""

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required, current_user

from cashier.routes.auth import log_activity
from cashier.services.return_service import ReturnService
from cashier.utils.permissions import permission_required, Permissions
from cashier.utils.validators import parse_return_request, parse_date

bp = Blueprint('returns', __name__)


def _money(value):
    return float(value) if value is not None else 0.0


def _error_response(error, **extra):
    body = {'success': False}
    body.update(error.to_dict())
    body.update(extra)
    return jsonify(body), error.http_status


def serialize_sale(sale, status):
    """Sale with customer, lines, lots, existing returns and return eligibility"""
    customer = sale.customer
    return {
        'id': sale.id,
        'sale_number': sale.sale_number,
        'created_at': sale.created_at.isoformat(),
        'subtotal': _money(sale.subtotal),
        'total': _money(sale.total),
        'payment_method': sale.payment_method,
        'payment_proof_url': sale.payment_proof_url,
        'customer': {
            'id': customer.id,
            'name': customer.name,
            'phone': customer.phone
        } if customer else None,
        'items': [{
            'id': item.id,
            'product_id': item.product_id,
            'product_name': item.product_name,
            'product_code': item.product.code if item.product else None,
            'batch_id': item.batch_id,
            'batch_number': item.batch.batch_number if item.batch else None,
            'quantity': item.quantity,
            'unit_price': _money(item.unit_price),
            'subtotal': _money(item.subtotal)
        } for item in sale.items],
        'returns': [{
            'id': ret.id,
            'return_number': ret.return_number,
            'total_amount': _money(ret.total_amount),
            'created_at': ret.created_at.isoformat()
        } for ret in sale.returns],
        'can_be_returned': status.can_be_returned,
        'return_status': status.to_dict()
    }


def serialize_return(ret):
    """Return record with its lines, source sale and cashier"""
    return {
        'id': ret.id,
        'return_number': ret.return_number,
        'sale_id': ret.sale_id,
        'sale_number': ret.sale.sale_number if ret.sale else None,
        'customer_id': ret.customer_id,
        'cashier': {
            'id': ret.cashier.id,
            'name': ret.cashier.full_name
        } if ret.cashier else None,
        'total_amount': _money(ret.total_amount),
        'reason': ret.reason,
        'created_at': ret.created_at.isoformat(),
        'items': [{
            'id': item.id,
            'product_id': item.product_id,
            'product_name': item.product_name,
            'sale_item_id': item.sale_item_id,
            'batch_id': item.batch_id,
            'quantity': item.quantity,
            'unit_price': _money(item.unit_price),
            'subtotal': _money(item.subtotal)
        } for item in ret.items]
    }


@bp.route('/search')
@login_required
@permission_required(Permissions.RETURNS_VIEW)
def search():
    """Find a sale by sale number or customer phone"""
    sale, error = ReturnService.find_sale(request.args.get('query', ''))
    if error:
        return _error_response(error)

    status = ReturnService.check_eligibility(sale)
    return jsonify(serialize_sale(sale, status))


@bp.route('/process', methods=['POST'])
@login_required
@permission_required(Permissions.RETURNS_PROCESS)
def process():
    """Process a return for a sale"""
    return_request, error = parse_return_request(
        request.get_json(silent=True),
        max_reason_length=current_app.config.get('RETURN_REASON_MAX_LENGTH', 255)
    )
    if error:
        return _error_response(error)

    outcome = ReturnService.process_return(return_request, cashier_id=current_user.id)
    anomalies = [anomaly.to_dict() for anomaly in outcome.anomalies]

    if not outcome.ok:
        return _error_response(outcome.error, anomalies=anomalies)

    ret = outcome.return_record
    log_activity(
        current_user.id, 'process_return', 'return', ret.id,
        f'Return {ret.return_number} for sale {ret.sale_id}, total {ret.total_amount}'
    )

    return jsonify({
        'success': True,
        'message': 'Return processed successfully.',
        'return': serialize_return(ret),
        'anomalies': anomalies
    }), 201


@bp.route('/list')
@login_required
@permission_required(Permissions.RETURNS_VIEW)
def list_returns():
    """Paginated return history"""
    on_date, error = parse_date(request.args.get('date'))
    if error:
        return _error_response(error)

    page = request.args.get('page', 1, type=int)
    pagination = ReturnService.list_returns(
        query=request.args.get('query', '').strip() or None,
        on_date=on_date,
        page=page
    )

    return jsonify({
        'returns': [serialize_return(ret) for ret in pagination.items],
        'page': pagination.page,
        'per_page': pagination.per_page,
        'total': pagination.total,
        'pages': pagination.pages
    })
