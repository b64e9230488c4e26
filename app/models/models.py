from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, Text, ForeignKey, Enum,
    JSON, UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from app.db.base_class import Base


# Enums
class UserRole(enum.Enum):
    CUSTOMER = "customer"
    BUSINESS = "business"
    STAFF = "staff"
    SUPER_ADMIN = "super_admin"


class BusinessStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class OfferStatus(enum.Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    EXPIRED = "expired"


class AcceptanceStatus(enum.Enum):
    PENDING = "pending"
    REDEEMED = "redeemed"
    EXPIRED = "expired"


class AnalyticsEventType(enum.Enum):
    OFFER_VIEW = "offer_view"
    OFFER_IMPRESSION = "offer_impression"
    OFFER_SHARE = "offer_share"
    BUSINESS_VIEW = "business_view"


# Main Models
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    mobile_number = Column(String(20), unique=True)
    name = Column(String(255), nullable=False)
    # Business owners get their password through the approval email
    password_hash = Column(String(255))
    role = Column(Enum(UserRole), default=UserRole.CUSTOMER, nullable=False)

    fcm_token = Column(String(500))

    # Status & Timestamps
    is_active = Column(Boolean, default=True)
    is_verified = Column(Boolean, default=False)
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    business = relationship(
        "Business", back_populates="owner", uselist=False, foreign_keys="Business.owner_id"
    )
    acceptances = relationship(
        "OfferAcceptance", back_populates="user", foreign_keys="OfferAcceptance.user_id"
    )
    reviews = relationship("Review", back_populates="user")
    favorite_offers = relationship("FavoriteOffer", back_populates="user", cascade="all, delete-orphan")
    favorite_businesses = relationship("FavoriteBusiness", back_populates="user", cascade="all, delete-orphan")


class Business(Base):
    __tablename__ = "businesses"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    # Profile
    business_name = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    category = Column(String(100), index=True)
    abn = Column(String(20))
    images = Column(JSON, default=list)

    # Location
    address = Column(String(500))
    pin_code = Column(String(10))
    latitude = Column(Float)
    longitude = Column(Float)
    google_maps_link = Column(String(500))

    # Hours
    opening_time = Column(String(10))
    closing_time = Column(String(10))
    working_days = Column(JSON, default=list)
    is_open_24_hours = Column(Boolean, default=False)

    # Approval
    status = Column(Enum(BusinessStatus), default=BusinessStatus.PENDING, nullable=False, index=True)
    review_note = Column(Text)
    approved_at = Column(DateTime)
    approved_by = Column(Integer, ForeignKey("users.id"))

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    owner = relationship("User", back_populates="business", foreign_keys=[owner_id])
    approver = relationship("User", foreign_keys=[approved_by])
    offers = relationship("Offer", back_populates="business", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="business", cascade="all, delete-orphan")
    favorites = relationship("FavoriteBusiness", back_populates="business", cascade="all, delete-orphan")


class Offer(Base):
    __tablename__ = "offers"

    id = Column(Integer, primary_key=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(String(500))

    start_date_time = Column(DateTime, nullable=False)
    end_date_time = Column(DateTime, nullable=False, index=True)
    status = Column(Enum(OfferStatus), default=OfferStatus.DRAFT, nullable=False, index=True)
    qr_validity_days = Column(Integer, default=1, nullable=False)

    # Counters
    view_count = Column(Integer, default=0, nullable=False)
    impression_count = Column(Integer, default=0, nullable=False)

    reposted_from_offer_id = Column(Integer, ForeignKey("offers.id", ondelete="SET NULL"))

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Relationships
    business = relationship("Business", back_populates="offers")
    creator = relationship("User", foreign_keys=[creator_id])
    reposted_from = relationship("Offer", remote_side=[id])
    acceptances = relationship("OfferAcceptance", back_populates="offer", cascade="all, delete-orphan")
    favorites = relationship("FavoriteOffer", back_populates="offer", cascade="all, delete-orphan")


class OfferAcceptance(Base):
    __tablename__ = "offer_acceptances"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    offer_id = Column(Integer, ForeignKey("offers.id"), nullable=False, index=True)
    qr_code = Column(String(64), unique=True, nullable=False, index=True)
    status = Column(Enum(AcceptanceStatus), default=AcceptanceStatus.PENDING, nullable=False)

    accepted_at = Column(DateTime, default=func.now())
    expires_at = Column(DateTime, nullable=False)
    redeemed_at = Column(DateTime)
    redeemed_by = Column(Integer, ForeignKey("users.id"))

    # Relationships
    user = relationship("User", back_populates="acceptances", foreign_keys=[user_id])
    offer = relationship("Offer", back_populates="acceptances")
    redeemer = relationship("User", foreign_keys=[redeemed_by])


class FavoriteOffer(Base):
    __tablename__ = "favorite_offers"
    __table_args__ = (UniqueConstraint("user_id", "offer_id", name="uq_favorite_offer"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    offer_id = Column(Integer, ForeignKey("offers.id"), nullable=False)
    created_at = Column(DateTime, default=func.now())

    user = relationship("User", back_populates="favorite_offers")
    offer = relationship("Offer", back_populates="favorites")


class FavoriteBusiness(Base):
    __tablename__ = "favorite_businesses"
    __table_args__ = (UniqueConstraint("user_id", "business_id", name="uq_favorite_business"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False)
    created_at = Column(DateTime, default=func.now())

    user = relationship("User", back_populates="favorite_businesses")
    business = relationship("Business", back_populates="favorites")


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("user_id", "business_id", name="uq_review_user_business"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text)
    created_at = Column(DateTime, default=func.now())

    user = relationship("User", back_populates="reviews")
    business = relationship("Business", back_populates="reviews")


class AnalyticsEvent(Base):
    __tablename__ = "analytics_events"

    id = Column(Integer, primary_key=True)
    type = Column(Enum(AnalyticsEventType), nullable=False, index=True)
    offer_id = Column(Integer, ForeignKey("offers.id", ondelete="CASCADE"), index=True)
    business_id = Column(Integer, ForeignKey("businesses.id", ondelete="CASCADE"), index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=func.now(), index=True)


class EmailOtp(Base):
    __tablename__ = "email_otps"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    code_hash = Column(String(255), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    attempts = Column(Integer, default=0, nullable=False)
    consumed_at = Column(DateTime)
    created_at = Column(DateTime, default=func.now())

    user = relationship("User")
