import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String(36), unique=True, index=True, default=generate_public_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)  # Normalised +9715XXXXXXXX
    avatar_url = Column(String(500), nullable=True)
    role = Column(String(20), nullable=False, default="homeowner", index=True)  # homeowner, pro, admin
    is_active = Column(Boolean, default=True, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    pro_profile = relationship(
        "ProProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        foreign_keys="ProProfile.user_id",
    )
    credit_balance = relationship(
        "CreditBalance", back_populates="professional", uselist=False, cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_approved_pro(self) -> bool:
        return (
            self.role == "pro"
            and self.pro_profile is not None
            and self.pro_profile.verification_status in ("basic", "comprehensive")
        )


class ProProfile(Base):
    __tablename__ = "pro_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    business_name = Column(String(255), nullable=True)
    slug = Column(String(255), unique=True, index=True, nullable=True)
    bio = Column(Text, nullable=True)
    service_categories = Column(JSON, default=list)  # ["plumbing", "electrical"]
    service_areas = Column(JSON, default=list)  # emirates served
    years_experience = Column(Integer, nullable=True)
    website = Column(String(500), nullable=True)
    # pending, basic, comprehensive, rejected
    verification_status = Column(String(20), default="pending", nullable=False, index=True)
    # [{"type": "trade_license", "url": ..., "key": ..., "uploaded_at": ...}]
    verification_documents = Column(JSON, default=list)
    rejection_reason = Column(Text, nullable=True)
    verified_at = Column(DateTime, nullable=True)
    verified_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    rating_average = Column(Float, default=0.0)
    review_count = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="pro_profile", foreign_keys=[user_id])


class Lead(Base):
    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String(36), unique=True, index=True, default=generate_public_id)
    homeowner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    emirate = Column(String(30), nullable=False, index=True)
    neighborhood = Column(String(255), nullable=True)
    full_address = Column(String(500), nullable=True)  # Hidden until claimed
    budget_bracket = Column(String(20), nullable=False)
    urgency = Column(String(20), nullable=False, default="flexible")
    timeline = Column(String(255), nullable=True)
    attachments = Column(JSON, default=list)
    preferences = Column(JSON, default=dict)
    # indirect = marketplace, direct = sent to one pro
    lead_type = Column(String(20), nullable=False, default="indirect")
    target_professional_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    direct_lead_status = Column(String(20), nullable=True)  # pending, accepted, declined, converted
    direct_lead_expires_at = Column(DateTime, nullable=True)
    converted_to_public_at = Column(DateTime, nullable=True)
    status = Column(String(20), nullable=False, default="open", index=True)
    claim_count = Column(Integer, nullable=False, default=0)
    max_claims = Column(Integer, nullable=False, default=5)
    expires_at = Column(DateTime, nullable=False, index=True)
    accepted_quote_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    homeowner = relationship("User", foreign_keys=[homeowner_id])
    target_professional = relationship("User", foreign_keys=[target_professional_id])
    claims = relationship("LeadClaim", back_populates="lead", cascade="all, delete-orphan")
    quotes = relationship("Quote", back_populates="lead", cascade="all, delete-orphan")


class LeadClaim(Base):
    __tablename__ = "lead_claims"
    __table_args__ = (UniqueConstraint("lead_id", "professional_id", name="uq_lead_claim_pro"),)

    id = Column(Integer, primary_key=True, index=True)
    lead_id = Column(Integer, ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    professional_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    credits_cost = Column(Integer, nullable=False, default=0)
    claimed_at = Column(DateTime, default=datetime.utcnow)
    quote_submitted = Column(Boolean, default=False, nullable=False)
    quote_submitted_at = Column(DateTime, nullable=True)
    refunded = Column(Boolean, default=False, nullable=False)

    lead = relationship("Lead", back_populates="claims")
    professional = relationship("User")


class Quote(Base):
    __tablename__ = "quotes"
    __table_args__ = (UniqueConstraint("lead_id", "professional_id", name="uq_quote_lead_pro"),)

    id = Column(Integer, primary_key=True, index=True)
    lead_id = Column(Integer, ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    professional_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    estimated_start_date = Column(DateTime, nullable=False)
    estimated_completion_date = Column(DateTime, nullable=False)
    estimated_duration_days = Column(Integer, nullable=True)
    approach = Column(Text, nullable=False)
    warranty = Column(Text, nullable=True)
    # [{"description", "category", "quantity", "unit_price", "total", "notes"}]
    items = Column(JSON, default=list)
    subtotal = Column(Float, nullable=False, default=0.0)
    vat = Column(Float, nullable=False, default=0.0)
    total = Column(Float, nullable=False, default=0.0)
    notes = Column(Text, nullable=True)
    attachments = Column(JSON, default=list)
    status = Column(String(20), nullable=False, default="pending", index=True)
    accepted_at = Column(DateTime, nullable=True)
    declined_at = Column(DateTime, nullable=True)
    decline_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    lead = relationship("Lead", back_populates="quotes")
    professional = relationship("User")


class Review(Base):
    """A homeowner's rating of the pro whose quote they accepted; one per lead"""

    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    lead_id = Column(Integer, ForeignKey("leads.id", ondelete="CASCADE"), unique=True, nullable=False)
    quote_id = Column(Integer, ForeignKey("quotes.id", ondelete="SET NULL"), nullable=True)
    professional_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    homeowner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    overall_rating = Column(Integer, nullable=False)  # 1-5
    # {"professionalism", "quality", "timeliness", "value", "communication"} each 1-5
    category_ratings = Column(JSON, default=dict)
    review_text = Column(Text, nullable=False)
    photos = Column(JSON, default=list)
    would_recommend = Column(Boolean, nullable=False, default=True)
    project_completed = Column(Boolean, nullable=False, default=True)
    professional_response = Column(Text, nullable=True)
    responded_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    lead = relationship("Lead")
    professional = relationship("User", foreign_keys=[professional_id])
    homeowner = relationship("User", foreign_keys=[homeowner_id])


class CreditBalance(Base):
    __tablename__ = "credit_balances"

    id = Column(Integer, primary_key=True, index=True)
    professional_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    total_balance = Column(Integer, nullable=False, default=0)
    free_credits = Column(Integer, nullable=False, default=0)
    paid_credits = Column(Integer, nullable=False, default=0)
    lifetime_earned = Column(Integer, nullable=False, default=0)
    lifetime_spent = Column(Integer, nullable=False, default=0)
    last_purchase_at = Column(DateTime, nullable=True)
    last_spend_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    professional = relationship("User", back_populates="credit_balance")


class CreditTransaction(Base):
    __tablename__ = "credit_transactions"

    id = Column(Integer, primary_key=True, index=True)
    professional_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False, index=True)  # purchase, spend, refund, bonus, expiry, adjustment
    credit_type = Column(String(10), nullable=False, default="paid")  # free, paid
    amount = Column(Integer, nullable=False)  # Negative for spend/expiry
    balance_before = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)
    description = Column(String(500), nullable=True)
    lead_id = Column(Integer, ForeignKey("leads.id", ondelete="SET NULL"), nullable=True)
    purchase_id = Column(Integer, ForeignKey("credit_purchases.id", ondelete="SET NULL"), nullable=True)
    # Unspent part of a grant, consumed FIFO when spending
    remaining_amount = Column(Integer, nullable=True)
    expires_at = Column(DateTime, nullable=True, index=True)
    meta = Column("metadata", JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class CreditPurchase(Base):
    __tablename__ = "credit_purchases"

    id = Column(Integer, primary_key=True, index=True)
    professional_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    package_id = Column(String(30), nullable=False)
    credits = Column(Integer, nullable=False)
    bonus_credits = Column(Integer, nullable=False, default=0)
    price_aed = Column(Float, nullable=False)
    vat_aed = Column(Float, nullable=False, default=0.0)
    total_aed = Column(Float, nullable=False)
    payment_reference = Column(String(64), unique=True, index=True, nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending, completed, failed
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(50), nullable=False)  # lead_claimed, quote_received, quote_accepted, ...
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSON, default=dict)
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
