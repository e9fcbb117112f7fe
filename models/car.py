from utils.db import mongo, utcnow
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from models.users import User


class Car:

    CATEGORIES = ["sedan", "suv", "hatchback", "coupe", "convertible", "van", "truck", "luxury", "economy"]
    TRANSMISSIONS = ["automatic", "manual"]
    FUEL_TYPES = ["petrol", "diesel", "electric", "hybrid", "cng"]
    STATUSES = ["active", "maintenance", "inactive", "rented"]
    FEATURES = [
        "abs", "airbags", "parking_sensors", "traction_control",
        "rear_camera", "bluetooth", "rear_speakers", "mobile_charger",
        "child_seat", "sunroof", "cruise_control", "climate_control",
        "front_speakers", "push_start", "keyless_entry", "navigation",
        "heated_seats", "leather_seats", "usb_ports", "aux_input",
        "voice_control", "lane_assist", "parking_assist", "fog_lights",
        "alloy_wheels", "stability_control", "tinted_windows"
    ]
    REQUIRED_FIELDS = [
        "brand", "model", "year", "price", "category", "transmission",
        "fuelType", "seatingCapacity", "location", "description"
    ]
    MIN_YEAR = 1990
    MAX_IMAGES = 5

    # Joins the owner onto each car inside an aggregation
    OWNER_LOOKUP = [
        {"$lookup": {"from": "users", "localField": "ownedBy", "foreignField": "_id", "as": "ownerDetails"}},
        {"$unwind": {"path": "$ownerDetails", "preserveNullAndEmptyArrays": True}},
    ]

    # Cars that can be rented right now
    AVAILABLE_FILTER = {"isAvailable": True, "status": "active", "insuranceValid": True}

    INDEXES = [
        ([("brand", ASCENDING), ("model", ASCENDING)], {}),
        ([("category", ASCENDING), ("isAvailable", ASCENDING)], {}),
        ([("location", ASCENDING), ("isAvailable", ASCENDING)], {}),
        ([("price", ASCENDING)], {}),
        ([("rating", DESCENDING)], {}),
        ([("createdAt", DESCENDING)], {}),
        ([("brand", ASCENDING), ("category", ASCENDING), ("fuelType", ASCENDING)], {}),
        ([("transmission", ASCENDING), ("fuelType", ASCENDING)], {}),
        ([("seatingCapacity", ASCENDING)], {}),
        ([("status", ASCENDING)], {}),
        ([("registrationNumber", ASCENDING)], {"unique": True, "sparse": True}),
    ]

    @staticmethod
    def collection():
        return mongo.db.cars

    @staticmethod
    def new_document(data):
        """Build a car document from validated input."""
        now = utcnow()
        doc = dict(data)
        if doc.get("ownedBy"):
            doc["ownedBy"] = ObjectId(doc["ownedBy"])
        doc.setdefault("availableFrom", now)
        doc["createdAt"] = now
        doc["updatedAt"] = now
        return doc

    @staticmethod
    def find_by_id(car_id):
        return Car.collection().find_one({"_id": ObjectId(car_id)})

    @staticmethod
    def find_by_registration(registration_number, exclude_id=None):
        query = {"registrationNumber": registration_number}
        if exclude_id is not None:
            query["_id"] = {"$ne": ObjectId(exclude_id)}
        return Car.collection().find_one(query)

    @staticmethod
    def is_available_for_rental(car):
        return bool(car.get("isAvailable") and car.get("status") == "active" and car.get("insuranceValid"))

    @staticmethod
    def display_name(car):
        return f"{car.get('brand')} {car.get('model')} ({car.get('year')})"

    @staticmethod
    def attach_owners(cars):
        """Replace each ownedBy id with the owner's summary, like a populate."""
        owner_ids = list({c["ownedBy"] for c in cars if c.get("ownedBy")})
        owners = {}
        if owner_ids:
            cursor = User.collection().find(
                {"_id": {"$in": owner_ids}},
                {"firstName": 1, "lastName": 1, "email": 1}
            )
            owners = {u["_id"]: u for u in cursor}
        for car in cars:
            if car.get("ownedBy"):
                car["ownedBy"] = User.summary(owners.get(car["ownedBy"]))
        return cars

    # Aggregation rows carry the full owner document, trim it down
    @staticmethod
    def with_owner_details(row):
        owner = row.pop("ownerDetails", None)
        if owner:
            row["ownerDetails"] = User.summary(owner)
        return row
