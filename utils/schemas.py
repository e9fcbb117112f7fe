"""
utils/schemas.py
-----------------
Request body validation. Each schema trims strings and reports
human-readable messages; `validate` turns pydantic errors into a
ValidationFailed carrying the list of messages.
"""

import re
from datetime import datetime, timezone
from typing import List, Optional

from bson import ObjectId
from email_validator import validate_email, EmailNotValidError
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from models.booking import Booking
from models.car import Car
from models.users import User
from utils.db import utcnow
from utils.errors import ValidationFailed

NAME_PATTERN = re.compile(r"^[a-zA-Z\s]+$")


# -----------------------------
# Shared rules
# -----------------------------
def _check_name(value, label):
    if len(value) < 2:
        raise ValueError(f"{label} must be at least 2 characters long")
    if not NAME_PATTERN.match(value):
        raise ValueError(f"{label} can only contain alphabets and spaces")
    return value


def _check_password(value):
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", value):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", value):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", value):
        raise ValueError("Password must contain at least one number")
    if not re.search(r"[\W_]", value):
        raise ValueError("Password must contain at least one special character")
    return value


def _check_email(value):
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise ValueError("Invalid email address")
    return value.lower()


def _check_role(value):
    if value not in User.ROLES:
        raise ValueError("Role must be either 'user' or 'admin'")
    return value


def _as_utc_naive(value):
    # pymongo hands back naive UTC datetimes; keep comparisons consistent
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class _Schema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, allow_inf_nan=False, protected_namespaces=())


# -----------------------------
# Users
# -----------------------------
class SignupSchema(_Schema):
    firstName: str = Field(title="First name")
    lastName: str = Field(title="Last name")
    email: str = Field(title="Email")
    password: str = Field(title="Password")
    role: str = "user"

    @field_validator("firstName")
    @classmethod
    def first_name_rules(cls, v):
        return _check_name(v, "First name")

    @field_validator("lastName")
    @classmethod
    def last_name_rules(cls, v):
        return _check_name(v, "Last name")

    @field_validator("email")
    @classmethod
    def email_rules(cls, v):
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def password_rules(cls, v):
        return _check_password(v)

    @field_validator("role")
    @classmethod
    def role_rules(cls, v):
        return _check_role(v)


class LoginSchema(_Schema):
    email: str = Field(title="Email")
    password: str = Field(title="Password")

    @field_validator("email")
    @classmethod
    def email_rules(cls, v):
        return _check_email(v)


class UpdateUserSchema(_Schema):
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None

    @field_validator("firstName")
    @classmethod
    def first_name_rules(cls, v):
        return _check_name(v, "First name") if v is not None else v

    @field_validator("lastName")
    @classmethod
    def last_name_rules(cls, v):
        return _check_name(v, "Last name") if v is not None else v

    @field_validator("password")
    @classmethod
    def password_rules(cls, v):
        return _check_password(v) if v is not None else v

    @field_validator("role")
    @classmethod
    def role_rules(cls, v):
        return _check_role(v) if v is not None else v

    @field_validator("status")
    @classmethod
    def status_rules(cls, v):
        if v is not None and v not in User.STATUSES:
            raise ValueError("Status must be one of: " + ", ".join(User.STATUSES))
        return v


# -----------------------------
# Cars
# -----------------------------
class _CarRules(_Schema):
    """Field rules shared by the create and update car schemas."""

    @field_validator("category", "transmission", "fuelType", "status", mode="before", check_fields=False)
    @classmethod
    def lowercase_enums(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("category", check_fields=False)
    @classmethod
    def category_rules(cls, v):
        if v is not None and v not in Car.CATEGORIES:
            raise ValueError(f"{v} is not a valid category")
        return v

    @field_validator("transmission", check_fields=False)
    @classmethod
    def transmission_rules(cls, v):
        if v is not None and v not in Car.TRANSMISSIONS:
            raise ValueError(f"{v} is not a valid transmission type")
        return v

    @field_validator("fuelType", check_fields=False)
    @classmethod
    def fuel_type_rules(cls, v):
        if v is not None and v not in Car.FUEL_TYPES:
            raise ValueError(f"{v} is not a valid fuel type")
        return v

    @field_validator("status", check_fields=False)
    @classmethod
    def status_rules(cls, v):
        if v is not None and v not in Car.STATUSES:
            raise ValueError(f"{v} is not a valid status")
        return v

    @field_validator("year", check_fields=False)
    @classmethod
    def year_rules(cls, v):
        if v is None:
            return v
        if v < Car.MIN_YEAR:
            raise ValueError(f"Year must be {Car.MIN_YEAR} or later")
        if v > utcnow().year + 1:
            raise ValueError("Year cannot be in the future")
        return v

    @field_validator("price", check_fields=False)
    @classmethod
    def price_rules(cls, v):
        if v is not None and v < 0:
            raise ValueError("Price cannot be negative")
        return v

    @field_validator("seatingCapacity", check_fields=False)
    @classmethod
    def seating_rules(cls, v):
        if v is None:
            return v
        if v < 2:
            raise ValueError("Minimum 2 seats required")
        if v > 15:
            raise ValueError("Maximum 15 seats allowed")
        return v

    @field_validator("images", check_fields=False)
    @classmethod
    def images_rules(cls, v):
        if v is not None and len(v) > Car.MAX_IMAGES:
            raise ValueError(f"Maximum {Car.MAX_IMAGES} images allowed")
        return v

    @field_validator("description", check_fields=False)
    @classmethod
    def description_rules(cls, v):
        if v is None:
            return v
        if len(v) < 5:
            raise ValueError("Description must be at least 5 characters")
        if len(v) > 2000:
            raise ValueError("Description cannot exceed 2000 characters")
        return v

    @field_validator("registrationNumber", check_fields=False)
    @classmethod
    def registration_rules(cls, v):
        return v.upper() if v else None

    @field_validator("mileage", check_fields=False)
    @classmethod
    def mileage_rules(cls, v):
        if v is not None and v < 0:
            raise ValueError("Mileage cannot be negative")
        return v

    @field_validator("features", check_fields=False)
    @classmethod
    def features_rules(cls, v):
        if v is not None and any(f not in Car.FEATURES for f in v):
            raise ValueError("One or more features are invalid")
        return v

    @field_validator("rating", check_fields=False)
    @classmethod
    def rating_rules(cls, v):
        if v is None:
            return v
        if v < 0:
            raise ValueError("Rating cannot be less than 0")
        if v > 5:
            raise ValueError("Rating cannot be more than 5")
        return v

    @field_validator("totalReviews", "totalRentals", check_fields=False)
    @classmethod
    def counter_rules(cls, v, info):
        if v is not None and v < 0:
            label = "Total reviews" if info.field_name == "totalReviews" else "Total rentals"
            raise ValueError(f"{label} cannot be negative")
        return v

    @field_validator("minimumRentalDays", "maximumRentalDays", check_fields=False)
    @classmethod
    def rental_days_rules(cls, v, info):
        if v is not None and v < 1:
            label = "Minimum" if info.field_name == "minimumRentalDays" else "Maximum"
            raise ValueError(f"{label} rental days must be at least 1")
        return v

    @field_validator("ownedBy", check_fields=False)
    @classmethod
    def owner_rules(cls, v):
        if v is not None and not ObjectId.is_valid(v):
            raise ValueError("Invalid owner ID format")
        return v

    @field_validator("availableFrom", "insuranceExpiryDate", check_fields=False)
    @classmethod
    def date_rules(cls, v):
        return _as_utc_naive(v)


class CarSchema(_CarRules):
    brand: str = Field(title="Brand")
    model: str = Field(title="Model")
    year: int = Field(title="Year")
    price: float = Field(title="Price")
    category: str = Field(title="Category")
    transmission: str = Field(title="Transmission type")
    fuelType: str = Field(title="Fuel type")
    seatingCapacity: int = Field(title="Seating capacity")
    location: str = Field(title="Location")
    description: str = Field(title="Description")
    images: List[str] = Field(default_factory=list)
    color: str = "Not specified"
    registrationNumber: Optional[str] = None
    mileage: float = 0
    features: List[str] = Field(default_factory=list)
    isAvailable: bool = True
    availableFrom: Optional[datetime] = None
    rating: float = 0
    totalReviews: int = 0
    insuranceValid: bool = True
    insuranceExpiryDate: Optional[datetime] = None
    ownedBy: Optional[str] = None
    status: str = "active"
    totalRentals: int = 0
    minimumRentalDays: int = 1
    maximumRentalDays: int = 30

    @model_validator(mode="after")
    def rental_window(self):
        if self.maximumRentalDays < self.minimumRentalDays:
            raise ValueError("Maximum rental days cannot be less than minimum rental days")
        return self


class CarUpdateSchema(_CarRules):
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    price: Optional[float] = None
    category: Optional[str] = None
    transmission: Optional[str] = None
    fuelType: Optional[str] = None
    seatingCapacity: Optional[int] = None
    location: Optional[str] = None
    description: Optional[str] = None
    images: Optional[List[str]] = None
    color: Optional[str] = None
    registrationNumber: Optional[str] = None
    mileage: Optional[float] = None
    features: Optional[List[str]] = None
    isAvailable: Optional[bool] = None
    availableFrom: Optional[datetime] = None
    rating: Optional[float] = None
    totalReviews: Optional[int] = None
    insuranceValid: Optional[bool] = None
    insuranceExpiryDate: Optional[datetime] = None
    ownedBy: Optional[str] = None
    status: Optional[str] = None
    totalRentals: Optional[int] = None
    minimumRentalDays: Optional[int] = None
    maximumRentalDays: Optional[int] = None

    @model_validator(mode="after")
    def required_fields_not_cleared(self):
        cleared = [name for name in Car.REQUIRED_FIELDS
                   if name in self.model_fields_set and getattr(self, name) is None]
        if cleared:
            raise ValueError("Cannot clear required fields: " + ", ".join(cleared))
        return self


# -----------------------------
# Bookings
# -----------------------------
class BookingSchema(_Schema):
    car: str = Field(title="Car ID")
    startDate: datetime = Field(title="Start date")
    endDate: datetime = Field(title="End date")
    totalAmount: float = Field(title="Total amount")
    status: Optional[str] = None

    @field_validator("car")
    @classmethod
    def car_rules(cls, v):
        if not v:
            raise ValueError("Car ID is required")
        return v

    @field_validator("startDate", "endDate")
    @classmethod
    def date_rules(cls, v):
        return _as_utc_naive(v)

    @field_validator("totalAmount")
    @classmethod
    def amount_rules(cls, v):
        if v < 0:
            raise ValueError("Total amount cannot be negative")
        return v

    @field_validator("status")
    @classmethod
    def status_rules(cls, v):
        if v is not None and v not in Booking.STATUSES:
            raise ValueError("Status must be one of: " + ", ".join(Booking.STATUSES))
        return v

    @model_validator(mode="after")
    def date_order(self):
        if self.endDate < self.startDate:
            raise ValueError("End date cannot be before start date")
        return self


class BookingStatusSchema(_Schema):
    status: str = Field(title="Status")

    @field_validator("status")
    @classmethod
    def status_rules(cls, v):
        if v not in Booking.STATUSES:
            raise ValueError("Status must be one of: " + ", ".join(Booking.STATUSES))
        return v


# -----------------------------
# Entry point
# -----------------------------
def _messages(schema, error):
    messages = []
    for err in error.errors():
        field = err["loc"][0] if err["loc"] else None
        if err["type"] == "missing":
            info = schema.model_fields.get(field)
            title = info.title if info is not None and info.title else field
            messages.append(f"{title} is required")
        elif err["type"] == "value_error":
            messages.append(str(err.get("ctx", {}).get("error", err["msg"])))
        elif field is not None:
            messages.append(f"{field}: {err['msg']}")
        else:
            messages.append(err["msg"])
    return messages


def validate(schema, payload, partial=False):
    """
    Validate a request payload against a schema.

    Returns a plain dict. Optional fields left unset are dropped; with
    partial=True only the keys the caller actually sent are kept.
    """
    if not isinstance(payload, dict):
        raise ValidationFailed(["Request body must be a JSON object"])
    try:
        parsed = schema.model_validate(payload)
    except ValidationError as e:
        raise ValidationFailed(_messages(schema, e))
    if partial:
        return parsed.model_dump(exclude_unset=True)
    return parsed.model_dump(exclude_none=True)
