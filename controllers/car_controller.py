import logging

from bson import ObjectId
from flask import Blueprint, request, jsonify
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from models.car import Car
from utils.auth import token_required, admin_required
from utils.db import parse_object_id, serialize, utcnow
from utils.errors import ApiError, ValidationFailed
from utils.query import parse_pagination, parse_sort, total_pages, build_car_match, facet_pipeline, unpack_facet
from utils.schemas import validate, CarSchema, CarUpdateSchema

logger = logging.getLogger(__name__)

cars_bp = Blueprint("cars", __name__, url_prefix="/cars")

SORTABLE_FIELDS = {"createdAt", "updatedAt", "price", "year", "rating", "mileage",
                   "seatingCapacity", "brand", "model", "totalRentals"}
DUPLICATE_REGISTRATION = "A car with this registration number already exists"
# Optional fields that are removed instead of stored as null
UNSETTABLE_FIELDS = {"registrationNumber", "ownedBy", "availableFrom", "insuranceExpiryDate"}


# -----------------------------
# LIST CARS (public)
# -----------------------------
@cars_bp.route("", methods=["GET"])
@cars_bp.route("/", methods=["GET"])
def get_all_cars():
    page, limit, skip = parse_pagination(request.args)
    match = build_car_match(request.args)
    sort = parse_sort(request.args, SORTABLE_FIELDS)

    pipeline = facet_pipeline(match, sort, skip, limit, Car.OWNER_LOOKUP)
    data, total = unpack_facet(Car.collection().aggregate(pipeline))
    data = [Car.with_owner_details(row) for row in data]

    return jsonify({
        "message": "Cars retrieved successfully",
        "data": serialize(data),
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages(total, limit),
    }), 200


# -----------------------------
# AVAILABLE CARS (public)
# -----------------------------
@cars_bp.route("/available", methods=["GET"])
def get_available_cars():
    page, limit, skip = parse_pagination(request.args)

    cars = list(
        Car.collection().find(Car.AVAILABLE_FILTER)
            .sort([("createdAt", -1), ("_id", -1)])
            .skip(skip)
            .limit(limit)
    )
    total = Car.collection().count_documents(Car.AVAILABLE_FILTER)

    return jsonify({
        "message": "Available cars retrieved successfully",
        "data": serialize(Car.attach_owners(cars)),
        "page": page,
        "limit": limit,
        "total": total,
    }), 200


# -----------------------------
# VIEW CAR (public)
# -----------------------------
@cars_bp.route("/<car_id>", methods=["GET"])
def get_car_by_id(car_id):
    object_id = parse_object_id(car_id, "car")

    car = Car.find_by_id(object_id)
    if not car:
        raise ApiError(404, "Car not found")

    Car.attach_owners([car])
    return jsonify({"message": "Car retrieved successfully", "data": serialize(car)}), 200


# -----------------------------
# ADD CAR (admin)
# -----------------------------
@cars_bp.route("", methods=["POST"])
@cars_bp.route("/", methods=["POST"])
@token_required
@admin_required
def create_car():
    payload = request.get_json(silent=True)
    if not payload:
        raise ApiError(
            400,
            "Request body is empty. Please send car data in JSON format.",
            hint="Make sure Content-Type is set to application/json"
        )

    data = validate(CarSchema, payload)

    if data.get("registrationNumber") and Car.find_by_registration(data["registrationNumber"]):
        raise ApiError(409, DUPLICATE_REGISTRATION)

    doc = Car.new_document(data)
    try:
        doc["_id"] = Car.collection().insert_one(doc).inserted_id
    except DuplicateKeyError:
        raise ApiError(409, DUPLICATE_REGISTRATION)

    logger.info("Car created: %s [%s]", Car.display_name(doc), doc["_id"])
    return jsonify({"message": "Car created successfully", "data": serialize(doc)}), 201


# -----------------------------
# EDIT CAR (admin)
# -----------------------------
@cars_bp.route("/<car_id>", methods=["PUT"])
@token_required
@admin_required
def update_car(car_id):
    object_id = parse_object_id(car_id, "car")
    update_data = validate(CarUpdateSchema, request.get_json(silent=True), partial=True)

    existing = Car.collection().find_one({"_id": object_id})
    if not existing:
        raise ApiError(404, "Car not found")

    # Rental window is checked against the stored values it is not replacing
    min_days = update_data.get("minimumRentalDays") or existing.get("minimumRentalDays", 1)
    max_days = update_data.get("maximumRentalDays") or existing.get("maximumRentalDays", 30)
    if max_days < min_days:
        raise ValidationFailed(["Maximum rental days cannot be less than minimum rental days"])

    registration = update_data.get("registrationNumber")
    if registration and Car.find_by_registration(registration, exclude_id=object_id):
        raise ApiError(409, DUPLICATE_REGISTRATION)

    to_set = {k: v for k, v in update_data.items() if v is not None}
    to_unset = {k: "" for k, v in update_data.items() if v is None and k in UNSETTABLE_FIELDS}
    if to_set.get("ownedBy"):
        to_set["ownedBy"] = ObjectId(to_set["ownedBy"])
    to_set["updatedAt"] = utcnow()

    update = {"$set": to_set}
    if to_unset:
        update["$unset"] = to_unset

    try:
        car = Car.collection().find_one_and_update(
            {"_id": object_id}, update, return_document=ReturnDocument.AFTER
        )
    except DuplicateKeyError:
        raise ApiError(409, DUPLICATE_REGISTRATION)
    if not car:
        raise ApiError(404, "Car not found")

    Car.attach_owners([car])
    logger.info("Car updated: %s", car_id)
    return jsonify({"message": "Car updated successfully", "data": serialize(car)}), 200


# -----------------------------
# DELETE CAR (admin)
# -----------------------------
@cars_bp.route("/<car_id>", methods=["DELETE"])
@token_required
@admin_required
def delete_car(car_id):
    object_id = parse_object_id(car_id, "car")

    car = Car.collection().find_one_and_delete({"_id": object_id})
    if not car:
        raise ApiError(404, "Car not found")

    logger.info("Car deleted: %s [%s]", Car.display_name(car), car_id)
    return jsonify({
        "message": "Car deleted successfully",
        "data": serialize({
            "id": car["_id"],
            "brand": car.get("brand"),
            "model": car.get("model"),
            "registrationNumber": car.get("registrationNumber"),
        })
    }), 200
