# ==============================================================================
# payportal/__init__.py
# ------------------------------------------------------------------------------
# Application factory for creating and configuring the Flask app instance.
# ==============================================================================

import os
import logging
from flask import Flask, send_from_directory
from config import Config
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_wtf.csrf import CSRFProtect

# Initialize extensions globally to be accessible by other modules
db = SQLAlchemy()
migrate = Migrate()
csrf = CSRFProtect()

def create_app(config_class=Config):
    """
    Application factory function. Creates and configures the Flask application.

    Args:
        config_class (class): The configuration class to use.

    Returns:
        Flask: The configured Flask application instance.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)

    # Configure logging
    logging.basicConfig(level=logging.INFO,
                        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')

    # The instance folder holds the SQLite database and uploaded files
    os.makedirs(app.instance_path, exist_ok=True)

    # Initialize extensions with the application instance
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    # Register blueprints with the application
    from payportal.main import bp as main_bp
    app.register_blueprint(main_bp)

    # Locally stored blobs are served under BLOB_PUBLIC_URL when it is a path
    public_url = app.config.get('BLOB_PUBLIC_URL', '')
    if public_url.startswith('/'):
        @app.route(public_url.rstrip('/') + '/<path:blob_path>')
        def serve_blob(blob_path):
            return send_from_directory(app.config['BLOB_STORAGE_ROOT'], blob_path)

    @app.cli.command("seed")
    def seed():
        """Seeds the database with default companies and designations."""
        from payportal.seed import seed_data
        seed_data()
        app.logger.info("Database has been seeded with default values.")

    app.logger.info('Payslip portal startup complete')

    return app
