from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from flask import current_app, g, request
from werkzeug.security import generate_password_hash, check_password_hash

from utils.errors import ApiError


# ============================================================
# PASSWORD HASHING
# ============================================================

def hash_password(password):
    return generate_password_hash(password)


def check_password(password_hash, password):
    if not password_hash or password is None:
        return False
    return check_password_hash(password_hash, password)


# ============================================================
# JWT
# ============================================================

def create_token(user):
    now = datetime.now(timezone.utc)
    payload = {
        "userId": str(user["_id"]),
        "role": user.get("role", "user"),
        "iat": now,
        "exp": now + timedelta(days=current_app.config["JWT_EXPIRES_DAYS"]),
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"],
                      algorithm=current_app.config["JWT_ALGORITHM"])


def decode_token(token):
    try:
        return jwt.decode(token, current_app.config["JWT_SECRET"],
                          algorithms=[current_app.config["JWT_ALGORITHM"]])
    except jwt.InvalidTokenError:
        # ExpiredSignatureError is a subclass
        raise ApiError(401, "Invalid or expired token")


def get_bearer_token():
    header = request.headers.get("Authorization", "")
    token = header.replace("Bearer ", "", 1).strip()
    if not token:
        raise ApiError(401, "No token provided")
    return token


# ============================================================
# DECORATORS
# ============================================================

# Verifies the bearer token and exposes the caller on flask.g
def token_required(view_function):
    @wraps(view_function)
    def decorated_function(*args, **kwargs):
        claims = decode_token(get_bearer_token())
        if not claims.get("userId"):
            raise ApiError(401, "Invalid or expired token")
        g.user_id = claims["userId"]
        g.user_role = claims.get("role")
        return view_function(*args, **kwargs)
    return decorated_function


# Stack under @token_required so the token is verified first
def admin_required(view_function):
    @wraps(view_function)
    def decorated_function(*args, **kwargs):
        if g.get("user_role") != "admin":
            raise ApiError(403, "Access denied. Admin privileges required.")
        return view_function(*args, **kwargs)
    return decorated_function
