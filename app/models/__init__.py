from app.models.models import (  # noqa
    UserRole, BusinessStatus, OfferStatus, AcceptanceStatus, AnalyticsEventType,
    User, Business, Offer, OfferAcceptance, FavoriteOffer, FavoriteBusiness,
    Review, AnalyticsEvent, EmailOtp,
)
