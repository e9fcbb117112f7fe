from datetime import datetime, timedelta, timezone

import jwt
import pytest

from utils.auth import hash_password, check_password, create_token, decode_token
from utils.errors import ApiError


def test_hash_password_is_salted_and_verifiable():
    """Same password hashes differently each time but still verifies"""
    first = hash_password("Passw0rd!")
    second = hash_password("Passw0rd!")

    assert first != second
    assert "Passw0rd!" not in first
    assert check_password(first, "Passw0rd!")
    assert not check_password(first, "wrong")


def test_check_password_handles_missing_hash():
    assert check_password(None, "Passw0rd!") is False
    assert check_password("", "Passw0rd!") is False


def test_token_carries_user_id_and_role(app, admin):
    with app.app_context():
        claims = decode_token(create_token(admin))

    assert claims["userId"] == str(admin["_id"])
    assert claims["role"] == "admin"
    assert claims["exp"] - claims["iat"] == 7 * 24 * 3600


def test_expired_token_rejected(app, user):
    payload = {
        "userId": str(user["_id"]),
        "role": "user",
        "exp": datetime.now(timezone.utc) - timedelta(seconds=5),
    }
    token = jwt.encode(payload, app.config["JWT_SECRET"], algorithm="HS256")

    with app.app_context():
        with pytest.raises(ApiError) as excinfo:
            decode_token(token)

    assert excinfo.value.status_code == 401
    assert excinfo.value.message == "Invalid or expired token"


def test_token_signed_with_other_secret_rejected(app, user):
    token = jwt.encode({"userId": str(user["_id"]), "role": "admin"}, "not-the-secret", algorithm="HS256")

    with app.app_context():
        with pytest.raises(ApiError):
            decode_token(token)


def test_protected_route_without_token(client):
    response = client.get("/bookings/my-bookings")

    assert response.status_code == 401
    assert response.get_json()["message"] == "No token provided"


def test_protected_route_with_garbage_token(client):
    response = client.get("/bookings/my-bookings", headers={"Authorization": "Bearer not.a.token"})

    assert response.status_code == 401
    assert response.get_json()["message"] == "Invalid or expired token"


def test_admin_route_rejects_regular_user(client, user_headers):
    response = client.get("/users/all", headers=user_headers)

    assert response.status_code == 403
    assert response.get_json()["message"] == "Access denied. Admin privileges required."


def test_admin_route_checks_token_before_role(client):
    """No token on an admin route is a 401, not a 403"""
    response = client.delete("/cars/507f1f77bcf86cd799439011")

    assert response.status_code == 401


def test_admin_route_accepts_admin(client, admin_headers):
    response = client.get("/users/all", headers=admin_headers)

    assert response.status_code == 200
