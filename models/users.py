from utils.db import mongo, utcnow
from utils.auth import hash_password, check_password
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING


class User:

    ROLES = ["user", "admin"]
    STATUSES = ["active", "inactive", "suspended"]

    INDEXES = [
        ([("email", ASCENDING)], {"unique": True}),
        ([("firstName", ASCENDING), ("lastName", ASCENDING)], {}),
        ([("createdAt", DESCENDING)], {}),
    ]

    @staticmethod
    def collection():
        return mongo.db.users

    def __init__(self, firstName, lastName, email, password, role=None,
                 status="active", lastLogin=None, createdAt=None, updatedAt=None):
        self.firstName = firstName
        self.lastName = lastName
        self.email = email.strip().lower()
        self.password = hash_password(password)
        self.role = role or "user"
        self.status = status
        self.lastLogin = lastLogin
        self.createdAt = createdAt or utcnow()
        self.updatedAt = updatedAt or self.createdAt

    # Convert to dictionary for MongoDB
    def to_dict(self):
        return {
            "firstName": self.firstName,
            "lastName": self.lastName,
            "email": self.email,
            "password": self.password,
            "role": self.role,
            "status": self.status,
            "lastLogin": self.lastLogin,
            "createdAt": self.createdAt,
            "updatedAt": self.updatedAt
        }

    # Save new user, returns the stored document
    def save(self):
        doc = self.to_dict()
        result = self.collection().insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    # Find user by ID
    @staticmethod
    def find_by_id(user_id):
        return User.collection().find_one({"_id": ObjectId(user_id)})

    # Find user by email
    @staticmethod
    def find_by_email(email):
        return User.collection().find_one({"email": email.strip().lower()})

    # Verify password
    @staticmethod
    def verify_password(email, password):
        user = User.find_by_email(email)
        if user and check_password(user.get("password"), password):
            return user
        return None

    # Record a successful login
    @staticmethod
    def touch_login(user_id):
        now = utcnow()
        User.collection().update_one(
            {"_id": ObjectId(user_id)},
            {"$set": {"lastLogin": now, "updatedAt": now}}
        )
        return now

    @staticmethod
    def public(user, detailed=True):
        """User fields safe to send back to a client (never the password)."""
        data = {
            "id": user["_id"],
            "firstName": user.get("firstName"),
            "lastName": user.get("lastName"),
            "email": user.get("email"),
            "role": user.get("role"),
            "status": user.get("status"),
        }
        if detailed:
            data["lastLogin"] = user.get("lastLogin")
            data["createdAt"] = user.get("createdAt")
            data["updatedAt"] = user.get("updatedAt")
        return data

    # Used when a user is joined onto a car or booking
    @staticmethod
    def summary(user):
        if not user:
            return None
        return {
            "_id": user["_id"],
            "firstName": user.get("firstName"),
            "lastName": user.get("lastName"),
            "email": user.get("email"),
        }
