import logging

from flask import Flask

from config import Config
from utils.db import init_db_connection, ensure_indexes
from utils.errors import register_error_handlers
from utils.cli import register_commands

# Import controllers
from controllers.user_controller import users_bp
from controllers.car_controller import cars_bp
from controllers.booking_controller import bookings_bp


def create_app(config_object=Config):
    app = Flask(__name__)               # Initialize Flask app
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    init_db_connection(app)             # Initialize MongoDB connection

    # Unique email / registration indexes must exist before the first write
    with app.app_context():
        ensure_indexes()

    # Register Blueprint
    app.register_blueprint(users_bp)
    app.register_blueprint(cars_bp)
    app.register_blueprint(bookings_bp)

    register_error_handlers(app)
    register_commands(app)

    @app.route("/")
    def index():
        return "Car Rental Backend is running"

    return app


# Run the app (`flask --app app run` picks up create_app as well)
if __name__ == "__main__":
    app = create_app()
    app.run(port=app.config["PORT"], debug=app.config["ENV_NAME"] == "development")
