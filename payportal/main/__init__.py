from flask import Blueprint
from datetime import datetime

bp = Blueprint('main', __name__)

# Makes 'now' available in all templates
@bp.app_context_processor
def inject_now():
    return {'now': datetime.utcnow()}

# Import routes and filters at the bottom
from payportal.main import routes, filters
