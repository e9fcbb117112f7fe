from datetime import datetime

import pytest

from utils.errors import ValidationFailed
from utils.schemas import (
    validate, SignupSchema, LoginSchema, UpdateUserSchema,
    CarSchema, CarUpdateSchema, BookingSchema, BookingStatusSchema,
)

SIGNUP = {
    "firstName": "  Jane ",
    "lastName": "Doe",
    "email": "Jane.Doe@Example.com",
    "password": "Secur3!pass",
}

CAR = {
    "brand": "Honda",
    "model": "City",
    "year": 2021,
    "price": 50,
    "category": "Sedan",
    "transmission": "MANUAL",
    "fuelType": "Petrol",
    "seatingCapacity": 5,
    "location": "Mumbai",
    "description": "Compact sedan",
}


def errors_for(schema, payload, **kwargs):
    with pytest.raises(ValidationFailed) as excinfo:
        validate(schema, payload, **kwargs)
    return excinfo.value.errors


# -----------------------------
# Signup / login
# -----------------------------
def test_signup_trims_and_normalises():
    data = validate(SignupSchema, SIGNUP)

    assert data["firstName"] == "Jane"
    assert data["email"] == "jane.doe@example.com"
    assert data["role"] == "user"


def test_signup_missing_fields_use_titles():
    errors = errors_for(SignupSchema, {})

    assert "First name is required" in errors
    assert "Last name is required" in errors
    assert "Email is required" in errors
    assert "Password is required" in errors


@pytest.mark.parametrize("password,message", [
    ("Sh0rt!", "Password must be at least 8 characters long"),
    ("lowercase1!", "Password must contain at least one uppercase letter"),
    ("UPPERCASE1!", "Password must contain at least one lowercase letter"),
    ("NoDigits!!", "Password must contain at least one number"),
    ("NoSpecial12", "Password must contain at least one special character"),
])
def test_signup_password_rules(password, message):
    errors = errors_for(SignupSchema, {**SIGNUP, "password": password})

    assert errors == [message]


def test_signup_rejects_bad_names_and_email():
    errors = errors_for(SignupSchema, {**SIGNUP, "firstName": "J", "lastName": "D0e", "email": "nope"})

    assert "First name must be at least 2 characters long" in errors
    assert "Last name can only contain alphabets and spaces" in errors
    assert "Invalid email address" in errors


def test_signup_rejects_unknown_role():
    errors = errors_for(SignupSchema, {**SIGNUP, "role": "superuser"})

    assert errors == ["Role must be either 'user' or 'admin'"]


def test_login_only_requires_a_password_string():
    data = validate(LoginSchema, {"email": "a@example.com", "password": "x"})

    assert data == {"email": "a@example.com", "password": "x"}


def test_non_object_body_rejected():
    assert errors_for(LoginSchema, None) == ["Request body must be a JSON object"]
    assert errors_for(LoginSchema, ["a"]) == ["Request body must be a JSON object"]


# -----------------------------
# User updates
# -----------------------------
def test_update_user_partial_keeps_only_sent_fields():
    data = validate(UpdateUserSchema, {"status": "suspended"}, partial=True)

    assert data == {"status": "suspended"}


def test_update_user_rejects_unknown_status():
    errors = errors_for(UpdateUserSchema, {"status": "banned"}, partial=True)

    assert errors == ["Status must be one of: active, inactive, suspended"]


# -----------------------------
# Cars
# -----------------------------
def test_car_enums_are_lowercased_and_defaults_applied():
    data = validate(CarSchema, CAR)

    assert data["category"] == "sedan"
    assert data["transmission"] == "manual"
    assert data["fuelType"] == "petrol"
    assert data["color"] == "Not specified"
    assert data["minimumRentalDays"] == 1
    assert data["maximumRentalDays"] == 30
    assert "registrationNumber" not in data


def test_car_registration_number_uppercased():
    data = validate(CarSchema, {**CAR, "registrationNumber": " mh12ab1234 "})

    assert data["registrationNumber"] == "MH12AB1234"


def test_car_rule_messages():
    payload = {
        **CAR,
        "category": "spaceship",
        "year": datetime.now().year + 2,
        "seatingCapacity": 1,
        "features": ["sunroof", "jetpack"],
        "images": ["a", "b", "c", "d", "e", "f"],
        "rating": 6,
    }
    errors = errors_for(CarSchema, payload)

    assert "spaceship is not a valid category" in errors
    assert "Year cannot be in the future" in errors
    assert "Minimum 2 seats required" in errors
    assert "One or more features are invalid" in errors
    assert "Maximum 5 images allowed" in errors
    assert "Rating cannot be more than 5" in errors


def test_car_rental_window_must_be_ordered():
    errors = errors_for(CarSchema, {**CAR, "minimumRentalDays": 10, "maximumRentalDays": 3})

    assert errors == ["Maximum rental days cannot be less than minimum rental days"]


def test_car_owner_must_be_object_id():
    errors = errors_for(CarSchema, {**CAR, "ownedBy": "abc"})

    assert errors == ["Invalid owner ID format"]


def test_car_update_is_partial():
    data = validate(CarUpdateSchema, {"price": 99, "fuelType": "Electric"}, partial=True)

    assert data == {"price": 99.0, "fuelType": "electric"}


def test_car_update_cannot_clear_required_field():
    errors = errors_for(CarUpdateSchema, {"brand": None}, partial=True)

    assert errors == ["Cannot clear required fields: brand"]


@pytest.mark.parametrize("field", ["price", "mileage", "rating"])
@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_car_numbers_must_be_finite(field, value):
    errors = errors_for(CarSchema, {**CAR, field: value})

    assert len(errors) == 1
    assert errors[0].startswith(f"{field}: ")


def test_car_update_price_must_be_finite():
    errors = errors_for(CarUpdateSchema, {"price": float("nan")}, partial=True)

    assert errors[0].startswith("price: ")


# -----------------------------
# Bookings
# -----------------------------
def test_booking_dates_parsed():
    data = validate(BookingSchema, {
        "car": "507f1f77bcf86cd799439011",
        "startDate": "2030-05-01T10:00:00Z",
        "endDate": "2030-05-04T10:00:00Z",
        "totalAmount": 300,
    })

    assert data["startDate"] == datetime(2030, 5, 1, 10, 0)
    assert data["endDate"] == datetime(2030, 5, 4, 10, 0)
    assert "status" not in data


def test_booking_end_before_start_rejected():
    errors = errors_for(BookingSchema, {
        "car": "507f1f77bcf86cd799439011",
        "startDate": "2030-05-04T00:00:00",
        "endDate": "2030-05-01T00:00:00",
        "totalAmount": 300,
    })

    assert errors == ["End date cannot be before start date"]


def test_booking_amount_and_car_rules():
    errors = errors_for(BookingSchema, {
        "car": "",
        "startDate": "2030-05-01T00:00:00",
        "endDate": "2030-05-02T00:00:00",
        "totalAmount": -1,
    })

    assert "Car ID is required" in errors
    assert "Total amount cannot be negative" in errors


def test_booking_status_schema():
    assert validate(BookingStatusSchema, {"status": "confirmed"}) == {"status": "confirmed"}
    assert errors_for(BookingStatusSchema, {"status": "lost"}) == [
        "Status must be one of: pending, confirmed, cancelled, completed"
    ]


def test_booking_amount_must_be_finite():
    errors = errors_for(BookingSchema, {
        "car": "507f1f77bcf86cd799439011",
        "startDate": "2030-05-01T00:00:00",
        "endDate": "2030-05-02T00:00:00",
        "totalAmount": float("nan"),
    })

    assert len(errors) == 1
    assert errors[0].startswith("totalAmount: ")
