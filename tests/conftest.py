"""
Pytest configuration and fixtures for Navexa application testing
"""

import os
from datetime import datetime

import pytest
import pytz

# Set test environment before importing app
os.environ.update({
    'FLASK_ENV': 'testing',
    'TESTING': 'true',
    'DATABASE_URL': 'sqlite:///:memory:',
    'NAVEXA_TIMEZONE': 'Asia/Kolkata',
})

from app import create_app, db

IST = pytz.timezone('Asia/Kolkata')

# Mid-morning on a mid-month day keeps the date arithmetic in tests unambiguous
FIXED_NOW = IST.localize(datetime(2024, 3, 15, 10, 30))

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'GEMINI_API_KEY': '',
    'NAVEXA_CLOCK': lambda: FIXED_NOW,
}


@pytest.fixture
def now():
    """Reference time shared by the unit tests and the app clock"""
    return FIXED_NOW


@pytest.fixture(scope='function')
def app():
    """Create application for testing"""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture(scope='function')
def live_error_app():
    """App that turns unhandled exceptions into responses, as in production"""
    app = create_app(dict(TEST_CONFIG, PROPAGATE_EXCEPTIONS=False))

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def services(app):
    """Services wired by the app factory"""
    return app.extensions['navexa']


@pytest.fixture
def scenario_trip_payload():
    """Trip form submission used across the derivation scenarios"""
    return {
        'date': '2024-03-12',
        'vehicleId': 'v1',
        'driverName': 'Ravi Kumar',
        'driverContact': '9876543210',
        'customerName': 'Sharma Family',
        'customerContact': '9123456780',
        'pickupLocation': 'Bengaluru Airport',
        'dropLocation': 'Mysuru',
        'startTime': '06:30',
        'endTime': '11:15',
        'totalAmount': 500,
        'startOdometer': 1000,
        'endOdometer': 1120,
        'notes': 'Airport pickup',
        'expenses': {
            'fuelCost': 50,
            'fuelQty': 4.5,
            'tollCharges': 10,
            'parkingCharges': 5,
            'otherExpenses': 0,
        },
        'driverPayment': {
            'totalDriverPay': 100,
            'advancePaid': 100,
            'paymentMode': 'UPI',
        },
    }
