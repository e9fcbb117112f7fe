from utils.db import mongo, utcnow
from bson import ObjectId
from pymongo import ASCENDING
from models.car import Car


class Booking:

    STATUSES = ["pending", "confirmed", "cancelled", "completed"]
    # Bookings in these states hold the car for their date range
    BLOCKING_STATUSES = ["pending", "confirmed"]

    # Car and user are required, bookings pointing at deleted ones drop out
    JOIN_STAGES = [
        {"$lookup": {"from": "cars", "localField": "car", "foreignField": "_id", "as": "carDetails"}},
        {"$unwind": "$carDetails"},
        {"$lookup": {"from": "users", "localField": "user", "foreignField": "_id", "as": "userDetails"}},
        {"$unwind": "$userDetails"},
    ]

    INDEXES = [
        ([("user", ASCENDING)], {}),
        ([("car", ASCENDING)], {}),
        ([("status", ASCENDING)], {}),
    ]

    @staticmethod
    def collection():
        return mongo.db.bookings

    def __init__(self, car, user, startDate, endDate, totalAmount, status=None,
                 createdAt=None, updatedAt=None):
        self.car = ObjectId(car)
        self.user = ObjectId(user)
        self.startDate = startDate
        self.endDate = endDate
        self.totalAmount = totalAmount
        self.status = status or "pending"
        self.createdAt = createdAt or utcnow()
        self.updatedAt = updatedAt or self.createdAt

    def to_dict(self):
        return {
            "car": self.car,
            "user": self.user,
            "startDate": self.startDate,
            "endDate": self.endDate,
            "totalAmount": self.totalAmount,
            "status": self.status,
            "createdAt": self.createdAt,
            "updatedAt": self.updatedAt,
        }

    def save(self):
        doc = self.to_dict()
        result = self.collection().insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    @staticmethod
    def find_by_id(booking_id):
        return Booking.collection().find_one({"_id": ObjectId(booking_id)})

    @staticmethod
    def overlapping(car_id, start, end):
        """First active booking of the car whose dates intersect [start, end]."""
        return Booking.collection().find_one({
            "car": ObjectId(car_id),
            "status": {"$in": Booking.BLOCKING_STATUSES},
            "startDate": {"$lte": end},
            "endDate": {"$gte": start},
        })

    @staticmethod
    def admin_view(row):
        """Shape a booking joined with carDetails / userDetails."""
        car = row.get("carDetails") or {}
        user = row.get("userDetails") or {}
        images = car.get("images") or []
        return {
            "_id": row["_id"],
            "status": row.get("status"),
            "startDate": row.get("startDate"),
            "endDate": row.get("endDate"),
            "totalAmount": row.get("totalAmount"),
            "createdAt": row.get("createdAt"),
            "car": {
                "_id": car.get("_id"),
                "brand": car.get("brand"),
                "model": car.get("model"),
                "image": images[0] if images else None,
                "price": car.get("price"),
                "registrationNumber": car.get("registrationNumber"),
            },
            "user": {
                "_id": user.get("_id"),
                "firstName": user.get("firstName"),
                "lastName": user.get("lastName"),
                "email": user.get("email"),
            },
        }

    @staticmethod
    def attach_cars(bookings):
        """Populate each booking's car with the fields a customer sees."""
        car_ids = list({b["car"] for b in bookings if b.get("car")})
        cars = {}
        if car_ids:
            cursor = Car.collection().find(
                {"_id": {"$in": car_ids}},
                {"brand": 1, "model": 1, "images": 1, "price": 1}
            )
            cars = {c["_id"]: c for c in cursor}
        for booking in bookings:
            booking["car"] = cars.get(booking.get("car"))
        return bookings

"""
Booking document example:
{
    "car": ObjectId("..."),
    "user": ObjectId("..."),
    "startDate": datetime(2025, 1, 10),
    "endDate": datetime(2025, 1, 14),
    "totalAmount": 320.0,
    "status": "pending"          # pending | confirmed | cancelled | completed
}
"""
