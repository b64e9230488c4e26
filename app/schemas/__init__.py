from .common import Message, StatusResponse, FavoriteToggle, UploadResult  # noqa
from .token import Token, TokenPayload  # noqa
from .user import (  # noqa
    User, UserCreate, UserUpdate, UserInDB, UserRegistered,
    ForgotPassword, ResetPassword, OtpVerify, FcmTokenUpdate,
)
from .business import (  # noqa
    Business, BusinessRegister, BusinessUpdate, BusinessSummary,
    BusinessPublic, BusinessNearby,
)
from .offer import Offer, OfferCreate, OfferUpdate, OfferNearby  # noqa
from .acceptance import Acceptance, AcceptanceWithOffer, RedeemRequest  # noqa
from .review import Review, ReviewCreate  # noqa
from .analytics import TrackEvent, OfferMetrics, MetricsTotals, OfferMetricsReport  # noqa
from .admin import (  # noqa
    ReviewDecision, BusinessWithOwner, BusinessOnboard, OwnerCreate, Dashboard,
    AdminOffer, BusinessStats, BusinessDetailed,
)
