# ==============================================================================
# config.py
# ------------------------------------------------------------------------------
# Configuration settings for the Flask application.
# Uses environment variables for sensitive data to keep them out of version control.
# ==============================================================================

import os
from dotenv import load_dotenv

# Determine the absolute path of the project directory
basedir = os.path.abspath(os.path.dirname(__file__))

# Load environment variables from a .env file located in the project root
load_dotenv(os.path.join(basedir, '.env'))

class Config:
    """
    Base configuration class. Contains default settings that can be overridden
    by environment-specific configurations.
    """
    # --- Security ---
    # Session signing and CSRF protection depend on this key.
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-should-really-set-a-secret-key-in-your-env-file'

    # Single shared password for the admin screens
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD') or 'change-this-default-password'

    # --- Database Configuration ---
    # SQLite file in the 'instance' folder unless DATABASE_URL says otherwise.
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance/app.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- Payroll Upload Configuration ---
    UPLOAD_FOLDER = os.path.join(basedir, 'instance/uploads')
    ALLOWED_EXTENSIONS = {'.xlsx', '.csv'}
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024

    # --- Document Archive ---
    DOCUMENT_EXTENSIONS = {'.pdf', '.doc', '.docx', '.xlsx', '.xls', '.jpg', '.jpeg', '.png'}
    BLOB_STORAGE_ROOT = os.environ.get('BLOB_STORAGE_ROOT') or os.path.join(basedir, 'instance/blobs')
    BLOB_PUBLIC_URL = os.environ.get('BLOB_PUBLIC_URL') or '/blobs'

    # --- Payslip Defaults ---
    COMPANY_NAME = os.environ.get('COMPANY_NAME') or 'RV Associates'
    COMPANY_ADDRESS = os.environ.get('COMPANY_ADDRESS') or 'Aarya Exotica, opposite KD-10, Bil, Vadodara 391410'
    DEFAULT_DEPARTMENT = os.environ.get('DEFAULT_DEPARTMENT') or 'General'

    WKHTMLTOPDF_PATH = os.environ.get('WKHTMLTOPDF_PATH') or None
