from .health import health_bp
from .auth import auth_bp
from .admin import admin_bp
from .offered_services import services_bp
from .booking import booking_bp
from .reservations import reservations_bp
from .providers import providers_bp
