"""
Database Models
SQLAlchemy ORM models for the cashier returns module
"""

from datetime import datetime
from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

db = SQLAlchemy()


class User(UserMixin, db.Model):
    """User model for authentication and authorization"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(128), nullable=False)
    role = db.Column(db.String(32), nullable=False, default='cashier')
    # Roles: admin, manager, cashier, stock_manager
    is_active = db.Column(db.Boolean, default=True)
    last_login = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    sales = db.relationship('Sale', backref='cashier', lazy='dynamic')
    processed_returns = db.relationship('Return', backref='cashier', lazy='dynamic')

    ROLE_PERMISSIONS = {
        'admin': ['all'],
        'manager': ['returns.view', 'returns.process'],
        'cashier': ['returns.view', 'returns.process'],
        'stock_manager': ['returns.view'],
    }

    def set_password(self, password):
        """Hash and set password"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Verify password"""
        return check_password_hash(self.password_hash, password)

    def has_permission(self, permission):
        """Check if user has specific permission based on role"""
        granted = self.ROLE_PERMISSIONS.get(self.role, [])
        return 'all' in granted or permission in granted

    def __repr__(self):
        return f'<User {self.username}>'


class Customer(db.Model):
    """Customer management"""
    __tablename__ = 'customers'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, index=True)
    phone = db.Column(db.String(32), unique=True, index=True)
    email = db.Column(db.String(120))
    address = db.Column(db.Text)

    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    sales = db.relationship('Sale', backref='customer', lazy='dynamic')

    def __repr__(self):
        return f'<Customer {self.name}>'


class Product(db.Model):
    """Product/Inventory items"""
    __tablename__ = 'products'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), unique=True, nullable=False, index=True)
    barcode = db.Column(db.String(128), unique=True, index=True)
    name = db.Column(db.String(256), nullable=False, index=True)
    unit = db.Column(db.String(32), default='piece')

    # Pricing
    cost_price = db.Column(db.Numeric(10, 2), nullable=False, default=0.00)
    selling_price = db.Column(db.Numeric(10, 2), nullable=False, default=0.00)

    # Stock
    quantity = db.Column(db.Integer, default=0)
    reorder_level = db.Column(db.Integer, default=10)

    is_active = db.Column(db.Boolean, default=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    sale_items = db.relationship('SaleItem', backref='product', lazy='dynamic')
    batch_items = db.relationship('BatchItem', backref='product', lazy='dynamic')

    @property
    def is_low_stock(self):
        """Check if product is below reorder level"""
        return (self.quantity or 0) <= self.reorder_level

    def __repr__(self):
        return f'<Product {self.code} - {self.name}>'


class Batch(db.Model):
    """Received inventory lot"""
    __tablename__ = 'batches'

    id = db.Column(db.Integer, primary_key=True)
    batch_number = db.Column(db.String(64), unique=True, nullable=False, index=True)
    supplier_name = db.Column(db.String(128))
    received_date = db.Column(db.Date)
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    items = db.relationship('BatchItem', backref='batch', lazy='dynamic',
                            cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Batch {self.batch_number}>'


class BatchItem(db.Model):
    """Per-lot stock counter for a product"""
    __tablename__ = 'batch_items'
    __table_args__ = (
        db.UniqueConstraint('batch_id', 'product_id', name='uq_batch_items_batch_product'),
    )

    id = db.Column(db.Integer, primary_key=True)
    batch_id = db.Column(db.Integer, db.ForeignKey('batches.id'), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False, index=True)

    initial_quantity = db.Column(db.Integer, nullable=False, default=0)
    current_quantity = db.Column(db.Integer, nullable=False, default=0)
    unit_cost = db.Column(db.Numeric(10, 2))
    expiry_date = db.Column(db.Date)

    inventory_status = db.Column(db.String(20), default='active')
    # active, depleted, expired, disposed

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<BatchItem batch={self.batch_id} product={self.product_id} qty={self.current_quantity}>'


class Sale(db.Model):
    """Sales transactions"""
    __tablename__ = 'sales'

    id = db.Column(db.Integer, primary_key=True)
    sale_number = db.Column(db.String(64), unique=True, nullable=False, index=True)

    # References
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'))
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)

    # Amounts
    subtotal = db.Column(db.Numeric(10, 2), nullable=False, default=0.00)
    discount = db.Column(db.Numeric(10, 2), default=0.00)
    total = db.Column(db.Numeric(10, 2), nullable=False, default=0.00)

    # Payment
    payment_method = db.Column(db.String(32), nullable=False, default='cash')
    payment_proof_url = db.Column(db.String(512))

    status = db.Column(db.String(32), default='completed')  # completed, cancelled
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    items = db.relationship('SaleItem', backref='sale', order_by='SaleItem.id',
                            cascade='all, delete-orphan')
    returns = db.relationship('Return', backref='sale', lazy='dynamic')

    def calculate_totals(self):
        """Calculate sale totals from items"""
        self.subtotal = sum(item.subtotal for item in self.items)
        self.total = self.subtotal - (self.discount or 0)
        return self.total

    def __repr__(self):
        return f'<Sale {self.sale_number}>'


class SaleItem(db.Model):
    """Individual items in a sale, one row per product and lot"""
    __tablename__ = 'sale_items'

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey('sales.id'), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False)
    batch_id = db.Column(db.Integer, db.ForeignKey('batches.id'))

    product_name = db.Column(db.String(256), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    subtotal = db.Column(db.Numeric(10, 2), nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    batch = db.relationship('Batch')

    def calculate_subtotal(self):
        """Calculate item subtotal"""
        self.subtotal = self.quantity * self.unit_price
        return self.subtotal

    def __repr__(self):
        return f'<SaleItem {self.id}>'


class Return(db.Model):
    """Customer return against a sale"""
    __tablename__ = 'returns'

    id = db.Column(db.Integer, primary_key=True)
    return_number = db.Column(db.String(64), unique=True, nullable=False, index=True)

    # One return per sale
    sale_id = db.Column(db.Integer, db.ForeignKey('sales.id'), nullable=False, unique=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'))
    processed_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)

    total_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0.00)
    reason = db.Column(db.String(255))

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    # Relationships
    items = db.relationship('ReturnItem', backref='return_order', order_by='ReturnItem.id',
                            cascade='all, delete-orphan')
    customer = db.relationship('Customer')

    def __repr__(self):
        return f'<Return {self.return_number}>'


class ReturnItem(db.Model):
    """Returned quantity apportioned from one sale line"""
    __tablename__ = 'return_items'

    id = db.Column(db.Integer, primary_key=True)
    return_id = db.Column(db.Integer, db.ForeignKey('returns.id'), nullable=False, index=True)
    sale_item_id = db.Column(db.Integer, db.ForeignKey('sale_items.id'))
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False)
    batch_id = db.Column(db.Integer, db.ForeignKey('batches.id'))

    product_name = db.Column(db.String(256), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    subtotal = db.Column(db.Numeric(10, 2), nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    product = db.relationship('Product')
    sale_item = db.relationship('SaleItem')

    def __repr__(self):
        return f'<ReturnItem {self.id}>'


class ActivityLog(db.Model):
    """Log of all critical activities"""
    __tablename__ = 'activity_logs'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    action = db.Column(db.String(128), nullable=False)
    entity_type = db.Column(db.String(64))  # return, user
    entity_id = db.Column(db.Integer)
    details = db.Column(db.Text)
    ip_address = db.Column(db.String(64))

    timestamp = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    # Relationship
    user = db.relationship('User')

    def __repr__(self):
        return f'<ActivityLog {self.action}>'


class ErrorLog(db.Model):
    """Unhandled application errors captured with request context"""
    __tablename__ = 'error_logs'
    __table_args__ = (
        db.Index('ix_error_logs_type_timestamp', 'error_type', 'timestamp'),
    )

    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
    error_type = db.Column(db.String(128), nullable=False, index=True)
    error_message = db.Column(db.Text, nullable=False)
    traceback = db.Column(db.Text)

    request_url = db.Column(db.String(512))
    request_method = db.Column(db.String(10))
    request_data = db.Column(db.Text)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    ip_address = db.Column(db.String(64))
    user_agent = db.Column(db.String(512))
    status_code = db.Column(db.Integer, index=True)
    blueprint = db.Column(db.String(64))
    endpoint = db.Column(db.String(128))

    is_resolved = db.Column(db.Boolean, default=False)
    resolved_at = db.Column(db.DateTime)

    def __repr__(self):
        return f'<ErrorLog {self.error_type} - {self.status_code}>'
