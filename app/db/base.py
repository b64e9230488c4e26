# Import all the models, so that Base has them before being
# imported by Alembic or create_all
from app.db.base_class import Base  # noqa
from app.models import (  # noqa
    User, Business, Offer, OfferAcceptance, FavoriteOffer,
    FavoriteBusiness, Review, AnalyticsEvent, EmailOtp,
)
