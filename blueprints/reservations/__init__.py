"""
Reservations blueprint initialization.
Assembles the JSON API for event reservations under /reservations.
"""

from flask import Blueprint

reservations_bp = Blueprint('reservations', __name__)

from blueprints.reservations.routes import register_routes
register_routes(reservations_bp)
