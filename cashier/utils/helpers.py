"""
Helper Utilities
Common utility functions used across the application
"""

import random
import string
from datetime import datetime, date
from decimal import Decimal

from cashier.models import db, User, Customer, Product, Batch, BatchItem, Sale, SaleItem


def generate_sale_number():
    """
    Generate sale number

    Format: SALE-YYYYMMDD-XXXX
    Where XXXX is a random 4-digit number

    Returns:
        str: Sale number
    """
    date_part = datetime.now().strftime('%Y%m%d')
    random_part = ''.join(random.choices(string.digits, k=4))
    return f"SALE-{date_part}-{random_part}"


def create_admin_user(username='admin', password='admin123'):
    """Create the default admin account if it does not exist"""
    admin = User.query.filter_by(username=username).first()
    if admin:
        return admin, False

    admin = User(
        username=username,
        email=f'{username}@cashier.local',
        full_name='Administrator',
        role='admin',
        is_active=True
    )
    admin.set_password(password)
    db.session.add(admin)
    db.session.commit()
    return admin, True


def create_sample_data(cashier):
    """
    Create a customer, two lots and a sale whose product was fulfilled
    from both lots, so the return workflow can be tried by hand.

    Returns:
        Sale: the created sale
    """
    customer = Customer.query.filter_by(phone='0900000001').first()
    if not customer:
        customer = Customer(name='Walk-in Sample', phone='0900000001')
        db.session.add(customer)

    product = Product.query.filter_by(code='SAMPLE-001').first()
    if not product:
        product = Product(
            code='SAMPLE-001',
            name='Sample Product',
            cost_price=Decimal('6.00'),
            selling_price=Decimal('10.00'),
            quantity=0
        )
        db.session.add(product)
    db.session.flush()

    lots = []
    for suffix, qty in (('A', 3), ('B', 5)):
        batch = Batch(
            batch_number=f"LOT-{datetime.now().strftime('%Y%m%d%H%M%S')}-{suffix}",
            received_date=date.today()
        )
        db.session.add(batch)
        db.session.flush()
        db.session.add(BatchItem(
            batch_id=batch.id,
            product_id=product.id,
            initial_quantity=qty,
            current_quantity=0,
            inventory_status='depleted'
        ))
        lots.append((batch, qty))

    sale = Sale(
        sale_number=generate_sale_number(),
        customer_id=customer.id,
        user_id=cashier.id,
        payment_method='cash'
    )
    for batch, qty in lots:
        item = SaleItem(
            product_id=product.id,
            batch_id=batch.id,
            product_name=product.name,
            quantity=qty,
            unit_price=product.selling_price
        )
        item.calculate_subtotal()
        sale.items.append(item)
    sale.calculate_totals()

    db.session.add(sale)
    db.session.commit()
    return sale
