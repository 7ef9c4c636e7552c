"""
Application Entry Point
Initializes and runs the cashier returns application
"""

import logging
import os
from cashier import create_app
from cashier.models import db

# Determine configuration environment
config_name = os.environ.get('FLASK_ENV', 'development')
app = create_app(config_name)

logger = logging.getLogger(__name__)


@app.shell_context_processor
def make_shell_context():
    """Make database and models available in Flask shell"""
    from cashier import models
    return {
        'db': db,
        'User': models.User,
        'Product': models.Product,
        'Sale': models.Sale,
        'Return': models.Return,
        'BatchItem': models.BatchItem
    }


@app.cli.command()
def init_db():
    """Initialize the database with tables and default admin user"""
    from cashier.utils.helpers import create_admin_user

    logger.info("Initializing database...")
    db.create_all()

    _, created = create_admin_user()
    if created:
        logger.info("Default admin user created (username: admin, password: admin123)")

    logger.info("Database initialized successfully!")


@app.cli.command()
def create_sample_data():
    """Create a sample sale split across two lots"""
    from cashier.utils.helpers import create_admin_user, create_sample_data as seed

    admin, _ = create_admin_user()
    sale = seed(admin)
    logger.info(f"Sample sale {sale.sale_number} created (id {sale.id})")


if __name__ == '__main__':
    is_dev = os.environ.get('FLASK_ENV', 'development') == 'development'

    with app.app_context():
        db.create_all()
        logger.info("Database tables created")

    logger.info(f"Starting {app.config['BUSINESS_NAME']} cashier returns service...")
    app.run(
        host='0.0.0.0',
        port=5001,
        debug=is_dev
    )
