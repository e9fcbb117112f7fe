import os


class Config:
    # MongoDB
    MONGO_URI = os.environ.get("MONGO_URI", "mongodb://localhost:27017/car-rental")

    # JWT
    JWT_SECRET = os.environ.get("JWT_SECRET", "change-me-in-production")
    JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")
    JWT_EXPIRES_DAYS = int(os.environ.get("JWT_EXPIRES_DAYS", "7"))

    # "development" exposes exception text in 500 responses
    ENV_NAME = os.environ.get("APP_ENV", "production")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    PORT = int(os.environ.get("PORT", "5000"))

    # Pagination
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100


class TestConfig(Config):
    TESTING = True
    MONGO_URI = "mongodb://localhost:27017/car-rental-test"
    JWT_SECRET = "test-secret"
    ENV_NAME = "test"
    LOG_LEVEL = "WARNING"
