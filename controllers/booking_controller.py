import logging

from flask import Blueprint, request, jsonify, g
from pymongo import ReturnDocument

from models.booking import Booking
from models.car import Car
from utils.auth import token_required, admin_required
from utils.db import parse_object_id, serialize, utcnow
from utils.errors import ApiError
from utils.query import parse_pagination, parse_sort, total_pages, build_booking_match, facet_pipeline, unpack_facet
from utils.schemas import validate, BookingSchema, BookingStatusSchema

logger = logging.getLogger(__name__)

bookings_bp = Blueprint("bookings", __name__, url_prefix="/bookings")

SORTABLE_FIELDS = {"createdAt", "startDate", "endDate", "totalAmount", "status"}


# -----------------------------
# BOOK CAR
# -----------------------------
@bookings_bp.route("", methods=["POST"])
@bookings_bp.route("/", methods=["POST"])
@token_required
def book_car():
    data = validate(BookingSchema, request.get_json(silent=True))
    car_id = parse_object_id(data["car"], "car")

    car = Car.find_by_id(car_id)
    if not car:
        raise ApiError(404, "Car not found")

    if not car.get("isAvailable"):
        raise ApiError(400, "Car is currently unavailable")

    if Booking.overlapping(car_id, data["startDate"], data["endDate"]):
        raise ApiError(409, "Car is already booked for the selected dates")

    # Only admins may create a booking in a state other than pending
    status = data.get("status") if g.user_role == "admin" else None

    booking = Booking(
        car=car_id,
        user=parse_object_id(g.user_id, "user"),
        startDate=data["startDate"],
        endDate=data["endDate"],
        totalAmount=data["totalAmount"],
        status=status,
    ).save()

    logger.info("Booking %s created for %s by user %s", booking["_id"], Car.display_name(car), g.user_id)
    return jsonify({"message": "Car booked successfully", "data": serialize(booking)}), 201


# -----------------------------
# MY BOOKINGS
# -----------------------------
@bookings_bp.route("/my-bookings", methods=["GET"])
@token_required
def get_user_bookings():
    user_id = parse_object_id(g.user_id, "user")
    page, limit, skip = parse_pagination(request.args)

    bookings = list(
        Booking.collection().find({"user": user_id})
            .sort([("createdAt", -1), ("_id", -1)])
            .skip(skip)
            .limit(limit)
    )
    total = Booking.collection().count_documents({"user": user_id})

    return jsonify({
        "message": "User bookings retrieved successfully",
        "data": serialize(Booking.attach_cars(bookings)),
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages(total, limit),
    }), 200


# -----------------------------
# ALL BOOKINGS (admin)
# -----------------------------
@bookings_bp.route("", methods=["GET"])
@bookings_bp.route("/", methods=["GET"])
@token_required
@admin_required
def get_all_bookings():
    page, limit, skip = parse_pagination(request.args)
    match = build_booking_match(request.args)
    sort = parse_sort(request.args, SORTABLE_FIELDS)

    pipeline = facet_pipeline(match, sort, skip, limit, Booking.JOIN_STAGES)
    data, total = unpack_facet(Booking.collection().aggregate(pipeline))

    return jsonify({
        "message": "All bookings retrieved successfully",
        "data": serialize([Booking.admin_view(row) for row in data]),
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages(total, limit),
    }), 200


# -----------------------------
# UPDATE STATUS (admin)
# -----------------------------
@bookings_bp.route("/<booking_id>", methods=["PUT"])
@token_required
@admin_required
def update_booking(booking_id):
    object_id = parse_object_id(booking_id, "booking")
    data = validate(BookingStatusSchema, request.get_json(silent=True))

    booking = Booking.collection().find_one_and_update(
        {"_id": object_id},
        {"$set": {"status": data["status"], "updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER
    )
    if not booking:
        raise ApiError(404, "Booking not found")

    logger.info("Booking %s set to %s", booking_id, data["status"])
    return jsonify({"message": "Booking updated successfully", "data": serialize(booking)}), 200


# -----------------------------
# DELETE BOOKING (admin)
# -----------------------------
@bookings_bp.route("/<booking_id>", methods=["DELETE"])
@token_required
@admin_required
def delete_booking(booking_id):
    object_id = parse_object_id(booking_id, "booking")

    result = Booking.collection().delete_one({"_id": object_id})
    if result.deleted_count == 0:
        raise ApiError(404, "Booking not found")

    logger.info("Booking deleted: %s", booking_id)
    return jsonify({"message": "Booking deleted successfully"}), 200
