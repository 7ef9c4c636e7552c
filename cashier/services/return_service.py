"""
Return Service
Handles cashier returns against completed sales including:
- Eligibility checks (return window, one return per sale)
- Apportioning returned quantities across sale lines and lots
- Restocking products and lot counters
- Return number generation
"""

import logging
import random
from collections import OrderedDict
from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from cashier.models import db, Sale, Product, BatchItem, Customer, Return, ReturnItem
from cashier.services.return_types import (
    Allocation, Anomaly, EligibilityStatus, NotEligible, NotFound, NothingToReturn, OverReturn,
    ReturnError, ReturnLine, ReturnNumberUnavailable, ReturnOutcome, ReturnRequest,
    ValidationError
)

logger = logging.getLogger(__name__)


class ReturnService:
    """Service for processing customer returns"""

    @staticmethod
    def generate_return_number(now: datetime = None) -> str:
        """
        Generate a return number candidate

        Format: <prefix>YYYYMMDDHHMMSS<3 random digits>, e.g. RT20261018143005417
        """
        now = now or datetime.utcnow()
        prefix = current_app.config.get('RETURN_NUMBER_PREFIX', 'RT')
        return f"{prefix}{now.strftime('%Y%m%d%H%M%S')}{random.randint(100, 999)}"

    @staticmethod
    def reserve_return_number(now: datetime = None) -> str:
        """Generate a return number that is not used by any stored return"""
        max_attempts = current_app.config.get('RETURN_NUMBER_MAX_ATTEMPTS', 5)

        for _ in range(max_attempts):
            candidate = ReturnService.generate_return_number(now)
            if not Return.query.filter_by(return_number=candidate).first():
                return candidate
            logger.warning(f"Return number {candidate} already in use, regenerating")

        raise ReturnNumberUnavailable(
            f"Could not generate an unused return number after {max_attempts} attempts"
        )

    @staticmethod
    def check_eligibility(sale: Sale, now: datetime = None) -> EligibilityStatus:
        """
        Decide whether a sale may still be returned

        A sale is returnable while no more than RETURN_WINDOW_HOURS have
        elapsed since it was created and no return exists for it yet.
        """
        now = now or datetime.utcnow()
        window = timedelta(hours=current_app.config.get('RETURN_WINDOW_HOURS', 24))

        return EligibilityStatus(
            has_been_returned=sale.returns.count() > 0,
            is_expired=(now - sale.created_at) > window
        )

    @staticmethod
    def eligibility_message(sale: Sale, status: EligibilityStatus) -> Optional[str]:
        """User-facing reason a sale cannot be returned, or None"""
        if status.has_been_returned:
            return f"Sale {sale.sale_number} has already been returned."
        if status.is_expired:
            hours = current_app.config.get('RETURN_WINDOW_HOURS', 24)
            return f"Sale {sale.sale_number} is older than {hours} hours and can no longer be returned."
        return None

    @staticmethod
    def apportion(sale_items: Sequence, quantity: int) -> List[Allocation]:
        """
        Distribute a return quantity across the sale lines of one product

        Lines are consumed first-fit in their stored order. Each line gives
        back at most what it sold and the walk stops as soon as the
        requested quantity is covered. The caller guarantees that quantity
        does not exceed the sum of the line quantities.

        Example: lines of 3 and 5 units, return 4 -> [(line1, 3), (line2, 1)]
        """
        allocations = []
        remaining = quantity

        for sale_item in sale_items:
            if remaining <= 0:
                break

            take = min(remaining, sale_item.quantity)
            if take > 0:
                allocations.append(Allocation(sale_item=sale_item, quantity=take))
                remaining -= take

        return allocations

    @staticmethod
    def find_sale(query: str) -> Tuple[Optional[Sale], Optional[ReturnError]]:
        """
        Find a sale by exact sale number or customer phone

        Returns:
            Tuple of (Sale, error)
        """
        query = (query or '').strip()
        if not query:
            return None, ValidationError('Please enter a sale number or customer phone.', 'query')

        sale = Sale.query.outerjoin(Customer, Sale.customer_id == Customer.id).filter(
            or_(
                Sale.sale_number == query,
                Customer.phone == query
            )
        ).order_by(Sale.created_at.desc(), Sale.id.desc()).first()

        if sale is None:
            return None, NotFound(f"No sale found for '{query}'.")

        return sale, None

    @staticmethod
    def list_returns(query: str = None, on_date=None, page: int = 1, per_page: int = None):
        """Paginated returns, newest first, filtered by number and/or day"""
        per_page = per_page or current_app.config.get('RETURNS_PER_PAGE', 5)
        returns_query = Return.query

        if query:
            # % and _ in the search text match literally
            escaped = query.strip().replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
            pattern = f'%{escaped}%'
            returns_query = returns_query.filter(
                or_(
                    Return.return_number.ilike(pattern, escape='\\'),
                    Return.sale.has(Sale.sale_number.ilike(pattern, escape='\\'))
                )
            )

        if on_date:
            day_start = datetime.combine(on_date, time.min)
            returns_query = returns_query.filter(
                Return.created_at >= day_start,
                Return.created_at < day_start + timedelta(days=1)
            )

        return returns_query.order_by(Return.created_at.desc(), Return.id.desc()).paginate(
            page=page, per_page=per_page, error_out=False
        )

    @staticmethod
    def process_return(
        return_request: ReturnRequest,
        cashier_id: int,
        now: datetime = None
    ) -> ReturnOutcome:
        """
        Process a return as a single transaction

        Either every effect commits (return record, return lines, product
        and lot restock) or the session is rolled back and the outcome
        carries the error. A unique-constraint violation at commit time is
        retried with a fresh return number, unless another return for the
        same sale won the race.

        Args:
            return_request: Sale, requested products and quantities, optional reason
            cashier_id: User processing the return
            now: Reference time for the eligibility window (defaults to utcnow)
        """
        error = ReturnService._check_request(return_request, cashier_id)
        if error:
            return ReturnOutcome(error=error)

        now = now or datetime.utcnow()
        sale_id = return_request.sale_id
        max_attempts = current_app.config.get('RETURN_NUMBER_MAX_ATTEMPTS', 5)

        for attempt in range(1, max_attempts + 1):
            try:
                outcome = ReturnService._apply_return(return_request, cashier_id, now)
                if not outcome.ok:
                    db.session.rollback()
                    logger.warning(f"Return for sale {sale_id} rejected: {outcome.error.message}")
                    return outcome
                db.session.commit()

            except IntegrityError as e:
                db.session.rollback()
                if Return.query.filter_by(sale_id=sale_id).first():
                    logger.warning(f"Sale {sale_id} was returned by a concurrent request")
                    return ReturnOutcome(error=NotEligible('This sale has already been returned.'))
                logger.warning(f"Return number collision for sale {sale_id} (attempt {attempt}): {e}")
                continue

            except (SQLAlchemyError, ReturnNumberUnavailable) as e:
                db.session.rollback()
                logger.error(f"Error processing return for sale {sale_id}: {e}")
                raise

            ret = outcome.return_record
            logger.info(f"Return {ret.return_number} processed for sale {sale_id}, total {ret.total_amount}")
            return outcome

        raise ReturnNumberUnavailable(
            f"Could not store return for sale {sale_id} after {max_attempts} attempts"
        )

    @staticmethod
    def _check_request(return_request: ReturnRequest, cashier_id: int) -> Optional[ValidationError]:
        if cashier_id is None:
            return ValidationError('A cashier is required to process a return.', 'cashier_id')
        if not return_request.items:
            return ValidationError('At least one item must be returned.', 'items')
        for line in return_request.items:
            if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity < 1:
                return ValidationError(
                    f"Quantity for product {line.product_id} must be a positive integer.", 'quantity'
                )

        reason = return_request.reason
        if reason is not None:
            max_length = current_app.config.get('RETURN_REASON_MAX_LENGTH', 255)
            if not isinstance(reason, str):
                return ValidationError('reason must be text.', 'reason')
            if len(reason) > max_length:
                return ValidationError(
                    f'reason may not be longer than {max_length} characters.', 'reason'
                )
        return None

    @staticmethod
    def _merge_lines(lines: Sequence[ReturnLine]) -> List[ReturnLine]:
        """Combine repeated products into one line, keeping first-seen order"""
        merged = OrderedDict()
        for line in lines:
            merged[line.product_id] = merged.get(line.product_id, 0) + line.quantity
        return [ReturnLine(product_id=pid, quantity=qty) for pid, qty in merged.items()]

    @staticmethod
    def _apply_return(
        return_request: ReturnRequest,
        cashier_id: int,
        now: datetime
    ) -> ReturnOutcome:
        """Stage all writes of a return in the session without committing"""
        lines = ReturnService._merge_lines(return_request.items)

        # Lock the sale row so concurrent returns for it are serialized
        sale = Sale.query.filter_by(id=return_request.sale_id).with_for_update().first()
        if sale is None:
            return ReturnOutcome(error=NotFound(f"Sale {return_request.sale_id} does not exist."))

        product_ids = [line.product_id for line in lines]
        products = {
            p.id: p for p in Product.query.filter(Product.id.in_(product_ids)).all()
        }
        for product_id in product_ids:
            if product_id not in products:
                return ReturnOutcome(error=NotFound(f"Product {product_id} does not exist."))

        status = ReturnService.check_eligibility(sale, now)
        if not status.can_be_returned:
            return ReturnOutcome(error=NotEligible(ReturnService.eligibility_message(sale, status)))

        ret = Return(
            return_number=ReturnService.reserve_return_number(now),
            sale_id=sale.id,
            customer_id=sale.customer_id,
            processed_by=cashier_id,
            total_amount=Decimal('0'),
            reason=return_request.reason,
            created_at=now
        )
        db.session.add(ret)

        anomalies = []
        total_amount = Decimal('0')
        product_restock: Dict[int, int] = OrderedDict()
        lot_restock: Dict[Tuple[Optional[int], int], int] = OrderedDict()

        for line in lines:
            sale_items = [item for item in sale.items if item.product_id == line.product_id]

            if not sale_items:
                message = f"Product {line.product_id} is not part of sale {sale.sale_number}; skipped."
                logger.warning(message)
                anomalies.append(Anomaly(product_id=line.product_id, message=message))
                continue

            purchased = sum(item.quantity for item in sale_items)
            if line.quantity > purchased:
                name = sale_items[0].product_name
                return ReturnOutcome(error=OverReturn(
                    f"Return quantity for {name} ({line.quantity}) exceeds the {purchased} purchased.",
                    product_id=line.product_id,
                    product_name=name
                ), anomalies=anomalies)

            for allocation in ReturnService.apportion(sale_items, line.quantity):
                sale_item = allocation.sale_item
                subtotal = sale_item.unit_price * allocation.quantity
                total_amount += subtotal

                ret.items.append(ReturnItem(
                    sale_item_id=sale_item.id,
                    product_id=sale_item.product_id,
                    batch_id=sale_item.batch_id,
                    product_name=sale_item.product_name,
                    quantity=allocation.quantity,
                    unit_price=sale_item.unit_price,
                    subtotal=subtotal,
                    created_at=now
                ))

                product_restock[sale_item.product_id] = \
                    product_restock.get(sale_item.product_id, 0) + allocation.quantity
                lot_key = (sale_item.batch_id, sale_item.product_id)
                lot_restock[lot_key] = lot_restock.get(lot_key, 0) + allocation.quantity

        # An empty return would still use up the sale's single return
        if not ret.items:
            return ReturnOutcome(
                error=NothingToReturn(
                    f"None of the requested products were sold on sale {sale.sale_number}."
                ),
                anomalies=anomalies
            )

        # Counters are incremented in SQL so concurrent writers do not lose updates
        for product_id, quantity in product_restock.items():
            product = products[product_id]
            product.quantity = db.func.coalesce(Product.quantity, 0) + quantity

        for (batch_id, product_id), quantity in lot_restock.items():
            anomaly = ReturnService._restock_lot(batch_id, product_id, quantity)
            if anomaly:
                anomalies.append(anomaly)

        ret.total_amount = total_amount
        return ReturnOutcome(return_record=ret, anomalies=anomalies)

    @staticmethod
    def _restock_lot(batch_id: Optional[int], product_id: int, quantity: int) -> Optional[Anomaly]:
        """Put returned units back on their lot and reactivate it"""
        if batch_id is None:
            message = f"Sale line for product {product_id} has no lot; lot stock not updated."
            logger.warning(message)
            return Anomaly(product_id=product_id, message=message)

        batch_item = BatchItem.query.filter_by(
            batch_id=batch_id,
            product_id=product_id
        ).with_for_update().first()

        if batch_item is None:
            message = f"No stock record for product {product_id} in lot {batch_id}; lot stock not updated."
            logger.warning(message)
            return Anomaly(product_id=product_id, batch_id=batch_id, message=message)

        batch_item.current_quantity = BatchItem.current_quantity + quantity
        batch_item.inventory_status = 'active'
        return None
