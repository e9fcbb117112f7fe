import flask_pymongo
import mongomock
import pytest

from app import create_app
from config import TestConfig
from models.booking import Booking
from models.car import Car
from models.users import User
from utils.auth import create_token
from utils.db import mongo

TEST_DB = "car-rental-test"

CAR_DEFAULTS = {
    "brand": "Toyota",
    "model": "Corolla",
    "year": 2020,
    "price": 45.0,
    "category": "sedan",
    "transmission": "automatic",
    "fuelType": "petrol",
    "seatingCapacity": 5,
    "location": "Pune",
    "description": "Reliable family sedan",
    "images": [],
    "features": [],
    "isAvailable": True,
    "insuranceValid": True,
    "status": "active",
}


# ============================================================================
# App / database
# ============================================================================
# Flask-PyMongo builds its client from `flask_pymongo.MongoClient`; swapping in
# mongomock keeps `mongo.db` in memory, including the indexes create_app builds.
@pytest.fixture
def app(monkeypatch):
    monkeypatch.setattr(flask_pymongo, "MongoClient", mongomock.MongoClient)
    app = create_app(TestConfig)

    yield app

    mongo.cx.drop_database(TEST_DB)


@pytest.fixture
def client(app):
    return app.test_client()


# ============================================================================
# Factories
# ============================================================================
@pytest.fixture
def make_user(app):
    """Insert a user and return the stored document."""
    counter = {"n": 0}

    def _make_user(role="user", password="Passw0rd!", **fields):
        counter["n"] += 1
        data = {
            "firstName": "Test",
            "lastName": "User",
            "email": f"user{counter['n']}@example.com",
            "password": password,
            "role": role,
        }
        data.update(fields)
        return User(**data).save()

    return _make_user


@pytest.fixture
def make_car(app):
    """Insert a car document, fields override CAR_DEFAULTS."""

    def _make_car(**fields):
        data = dict(CAR_DEFAULTS)
        data.update(fields)
        doc = Car.new_document(data)
        doc["_id"] = Car.collection().insert_one(doc).inserted_id
        return doc

    return _make_car


@pytest.fixture
def make_booking(app):

    def _make_booking(car, user, start, end, total=100.0, status=None):
        return Booking(car=car["_id"], user=user["_id"], startDate=start, endDate=end,
                       totalAmount=total, status=status).save()

    return _make_booking


@pytest.fixture
def auth_header(app):
    """Build an Authorization header for a stored user."""

    def _auth_header(user):
        with app.app_context():
            token = create_token(user)
        return {"Authorization": f"Bearer {token}"}

    return _auth_header


@pytest.fixture
def user(make_user):
    return make_user(firstName="Regular", email="regular@example.com")


@pytest.fixture
def admin(make_user):
    return make_user(role="admin", firstName="Admin", email="admin@example.com")


@pytest.fixture
def user_headers(user, auth_header):
    return auth_header(user)


@pytest.fixture
def admin_headers(admin, auth_header):
    return auth_header(admin)
