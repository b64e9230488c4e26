"""Great-circle distance evaluated inside the database.

The spherical law of cosines is used so the expression only needs
trigonometric functions that both PostgreSQL and (with the functions
registered in ``app.db.session``) SQLite understand.
"""
import math

from sqlalchemy import func, literal
from sqlalchemy.sql.elements import ColumnElement

EARTH_RADIUS_METERS = 6371000


def distance_expression(latitude: float, longitude: float, lat_column, lon_column) -> ColumnElement:
    cosine = (
        func.cos(func.radians(literal(latitude)))
        * func.cos(func.radians(lat_column))
        * func.cos(func.radians(lon_column) - func.radians(literal(longitude)))
        + func.sin(func.radians(literal(latitude))) * func.sin(func.radians(lat_column))
    )
    # Rounding can push the cosine just past 1 for identical points
    clamped = func.greatest(-1.0, func.least(1.0, cosine))
    return EARTH_RADIUS_METERS * func.acos(clamped)


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Python-side distance, used where rows are already loaded."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(a))
