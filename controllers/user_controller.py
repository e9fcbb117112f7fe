import logging

from flask import Blueprint, request, jsonify
from pymongo.errors import DuplicateKeyError

from models.users import User
from utils.auth import token_required, admin_required, get_bearer_token, decode_token, hash_password, create_token
from utils.db import parse_object_id, serialize, utcnow
from utils.errors import ApiError
from utils.query import parse_pagination, total_pages, contains
from utils.schemas import validate, SignupSchema, LoginSchema, UpdateUserSchema

logger = logging.getLogger(__name__)

users_bp = Blueprint("users", __name__, url_prefix="/users")


# -----------------------------
# SIGNUP
# -----------------------------
@users_bp.route("/signup", methods=["POST"])
def signup():
    data = validate(SignupSchema, request.get_json(silent=True))

    # Prevent duplicate users
    if User.find_by_email(data["email"]):
        raise ApiError(409, "User already exists")

    try:
        user = User(**data).save()
    except DuplicateKeyError:
        raise ApiError(409, "User already exists")

    logger.info("User registered: %s (%s)", user["email"], user["role"])
    return jsonify({
        "message": "User registered successfully",
        "user": serialize(User.public(user, detailed=False))
    }), 201


# -----------------------------
# LOGIN
# -----------------------------
@users_bp.route("/login", methods=["POST"])
def login():
    data = validate(LoginSchema, request.get_json(silent=True))

    user = User.verify_password(data["email"], data["password"])
    if not user:
        logger.warning("Failed login for %s", data["email"])
        raise ApiError(401, "Invalid email or password")

    User.touch_login(user["_id"])
    return jsonify({"token": create_token(user)}), 200


# -----------------------------
# VALIDATE TOKEN
# -----------------------------
@users_bp.route("/validate", methods=["GET"])
def validate_user():
    claims = decode_token(get_bearer_token())
    user_id = parse_object_id(claims.get("userId"), "user")

    user = User.find_by_id(user_id)
    if not user:
        raise ApiError(404, "User not found")

    return jsonify({"user": serialize(User.public(user))}), 200


# -----------------------------
# VIEW USERS (admin)
# -----------------------------
@users_bp.route("/all", methods=["GET"])
@token_required
@admin_required
def get_all_users():
    page, limit, skip = parse_pagination(request.args)

    # Case-insensitive partial match on email
    search_filter = {}
    if request.args.get("email"):
        search_filter["email"] = contains(request.args["email"])

    users = list(
        User.collection().find(search_filter, {"password": 0})
            .sort([("createdAt", -1), ("_id", -1)])
            .skip(skip)
            .limit(limit)
    )
    total = User.collection().count_documents(search_filter)

    # ------ Summary Counts ------
    stats = {
        "totalActive": User.collection().count_documents({**search_filter, "status": "active"}),
        "totalInactive": User.collection().count_documents({**search_filter, "status": "inactive"}),
        "totalSuspended": User.collection().count_documents({**search_filter, "status": "suspended"}),
        "totalAdmins": User.collection().count_documents({**search_filter, "role": "admin"}),
        "totalUsers": User.collection().count_documents({**search_filter, "role": "user"}),
    }

    return jsonify({
        "message": "Users retrieved successfully",
        "data": serialize(users),
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": total_pages(total, limit),
        },
        "stats": stats,
    }), 200


# -----------------------------
# EDIT USER (admin)
# -----------------------------
@users_bp.route("/update/<user_id>", methods=["PUT"])
@token_required
@admin_required
def update_user(user_id):
    object_id = parse_object_id(user_id, "user")
    update_data = validate(UpdateUserSchema, request.get_json(silent=True), partial=True)

    # Null means "leave unchanged"
    update_data = {k: v for k, v in update_data.items() if v is not None}
    if update_data.get("password"):
        update_data["password"] = hash_password(update_data["password"])
    update_data["updatedAt"] = utcnow()

    result = User.collection().update_one({"_id": object_id}, {"$set": update_data})
    if result.matched_count == 0:
        raise ApiError(404, "User not found")

    user = User.find_by_id(object_id)
    logger.info("User %s updated fields: %s", user_id, ", ".join(sorted(update_data)))
    return jsonify({
        "message": "Profile updated successfully",
        "user": serialize(User.public(user))
    }), 200


# -----------------------------
# DELETE USER (admin)
# -----------------------------
@users_bp.route("/delete/<user_id>", methods=["DELETE"])
@token_required
@admin_required
def delete_user(user_id):
    object_id = parse_object_id(user_id, "user")

    user = User.collection().find_one_and_delete({"_id": object_id})
    if not user:
        raise ApiError(404, "User not found")

    logger.info("User deleted: %s", user.get("email"))
    return jsonify({
        "message": "User deleted successfully",
        "deletedUser": serialize({
            "id": user["_id"],
            "firstName": user.get("firstName"),
            "lastName": user.get("lastName"),
            "email": user.get("email"),
        })
    }), 200
