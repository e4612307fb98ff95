"""Marketplace constants shared by the domains"""

PLATFORM_CONFIG = {
    "VAT_RATE": 0.05,
    "MAX_LEAD_CLAIMS": 5,
    "LEAD_EXPIRY_DAYS": 7,
    "DIRECT_LEAD_EXPIRY_HOURS": 24,
    "COMPREHENSIVE_DISCOUNT": 0.15,
    "MIN_PASSWORD_LENGTH": 8,
    "MAX_FILE_SIZE": 5 * 1024 * 1024,  # 5MB
    "MESSAGE_EDIT_WINDOW_MINUTES": 5,
    "REFUND_CREDIT_EXPIRY_DAYS": 180,
    "PURCHASED_CREDIT_EXPIRY_DAYS": 180,
    "SIGNUP_BONUS_CREDITS": 10,
}

# Lead budget brackets (AED) and the credits a pro pays to claim
BUDGET_BRACKETS = {
    "500-1k": {"label": "AED 500 - 1,000", "min": 500, "max": 1000, "credits": 5},
    "1k-5k": {"label": "AED 1,000 - 5,000", "min": 1000, "max": 5000, "credits": 10},
    "5k-15k": {"label": "AED 5,000 - 15,000", "min": 5000, "max": 15000, "credits": 20},
    "15k-50k": {"label": "AED 15,000 - 50,000", "min": 15000, "max": 50000, "credits": 40},
    "50k-150k": {"label": "AED 50,000 - 150,000", "min": 50000, "max": 150000, "credits": 75},
    "150k+": {"label": "AED 150,000+", "min": 150000, "max": None, "credits": 125},
}

URGENCY_LEVELS = {
    "emergency": {"label": "Emergency (within 24h)", "multiplier": 1.5, "rank": 0},
    "urgent": {"label": "Urgent (this week)", "multiplier": 1.0, "rank": 1},
    "flexible": {"label": "Flexible (this month)", "multiplier": 1.0, "rank": 2},
    "planning": {"label": "Planning (no rush)", "multiplier": 1.0, "rank": 3},
}

EMIRATES = [
    "dubai",
    "abu-dhabi",
    "sharjah",
    "ajman",
    "umm-al-quwain",
    "ras-al-khaimah",
    "fujairah",
]

SERVICE_CATEGORIES = [
    "plumbing",
    "electrical",
    "hvac",
    "painting",
    "carpentry",
    "flooring",
    "tiling",
    "roofing",
    "landscaping",
    "pool-maintenance",
    "pest-control",
    "cleaning",
    "handyman",
    "appliance-repair",
    "kitchen-remodeling",
    "bathroom-remodeling",
    "interior-design",
    "renovation",
    "masonry",
    "waterproofing",
    "smart-home",
    "security-systems",
    "moving",
    "other",
]

CREDIT_PACKAGES = {
    "starter": {"name": "Starter", "credits": 50, "price_aed": 250, "bonus_credits": 0},
    "professional": {"name": "Professional", "credits": 150, "price_aed": 600, "bonus_credits": 10},
    "business": {"name": "Business", "credits": 400, "price_aed": 1400, "bonus_credits": 40},
    "enterprise": {"name": "Enterprise", "credits": 1000, "price_aed": 3000, "bonus_credits": 150},
}

USER_ROLES = ["homeowner", "pro", "admin"]

# Pro verification lifecycle; basic/comprehensive count as approved
VERIFICATION_STATUSES = ["pending", "basic", "comprehensive", "rejected"]
APPROVED_VERIFICATION_STATUSES = ("basic", "comprehensive")
VERIFICATION_DOCUMENT_TYPES = ["trade_license", "emirates_id", "insurance", "other"]

LEAD_STATUSES = ["open", "quoted", "full", "accepted", "expired", "cancelled"]
CLAIMABLE_LEAD_STATUSES = ("open", "quoted")
MARKETPLACE_LEAD_STATUSES = ("open", "quoted", "full")
DIRECT_LEAD_STATUSES = ["pending", "accepted", "declined", "converted"]

QUOTE_STATUSES = ["pending", "accepted", "declined", "withdrawn"]
QUOTE_ITEM_CATEGORIES = ["labor", "materials", "permits", "equipment", "other"]

ROOM_CATEGORIES = [
    "kitchen",
    "bathroom",
    "living-room",
    "bedroom",
    "dining-room",
    "outdoor",
    "pool",
    "exterior",
    "office",
    "other",
]

ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/png", "image/webp"]
ALLOWED_DOCUMENT_TYPES = ALLOWED_IMAGE_TYPES + ["application/pdf"]

RESOURCE_TYPES = ["guide", "blog", "tip", "case-study", "industry-insight", "video", "webinar"]
RESOURCE_CATEGORIES = [
    "getting-started",
    "home-improvement-tips",
    "hiring-guides",
    "pro-business-tips",
    "case-studies",
    "industry-insights",
    "seasonal-maintenance",
    "diy-vs-hire",
]
RESOURCE_STATUSES = ["draft", "published", "archived"]
RESOURCE_AUDIENCES = ["homeowner", "pro", "both"]
CONTENT_FORMATS = ["html", "markdown", "blocks"]
WORDS_PER_MINUTE = 200

PHOTO_TYPES = ["main", "before", "after"]
PHOTO_ADMIN_STATUSES = ["active", "flagged", "removed"]

PROPERTY_OWNERSHIP_TYPES = ["owned", "rental"]
PROPERTY_TYPES = ["villa", "townhouse", "apartment", "penthouse"]
# Points each filled-in field adds to a property's profile completeness
PROPERTY_COMPLETENESS_WEIGHTS = {
    "name": 10,
    "emirate": 10,
    "ownership_type": 10,
    "property_type": 10,
    "bedrooms": 10,
    "bathrooms": 10,
    "size_sqft": 10,
    "year_built": 5,
    "neighborhood": 5,
    "full_address": 10,
    "rooms": 10,
}

HOME_PROJECT_CATEGORIES = [
    "kitchen",
    "bathroom",
    "bedroom",
    "living-room",
    "outdoor",
    "whole-home",
    "maintenance",
    "custom",
]
HOME_PROJECT_STATUSES = ["planning", "in-progress", "on-hold", "completed", "cancelled"]
TASK_STATUSES = ["todo", "in-progress", "blocked", "done"]
TASK_PRIORITIES = ["low", "medium", "high"]
COST_CATEGORIES = ["labor", "materials", "permits", "other"]
COST_STATUSES = ["estimated", "quoted", "paid"]
DEFAULT_HOME_PROJECT_NAME = "My Home"

EXPENSE_CATEGORIES = [
    "renovation",
    "repair",
    "maintenance",
    "utilities",
    "appliance",
    "furniture",
    "decor",
    "cleaning",
    "security",
    "landscaping",
    "permits",
    "other",
]
VENDOR_TYPES = ["homezy", "external"]

SERVICE_TYPES = ["maintenance", "repair", "installation", "renovation", "inspection"]

REVIEW_RATING_CATEGORIES = ["professionalism", "quality", "timeliness", "value", "communication"]
REVIEW_TEXT_MIN_LENGTH = 50
REVIEW_TEXT_MAX_LENGTH = 500
MAX_REVIEW_PHOTOS = 5

# Service reminders
REMINDER_FREQUENCIES = {"monthly": 30, "quarterly": 91, "biannual": 182, "annual": 365, "custom": None}
REMINDER_STATUSES = ["active", "snoozed", "paused"]
REMINDER_TRIGGER_TYPES = ["custom", "seasonal", "pattern-based"]
DEFAULT_REMINDER_LEAD_DAYS = [30, 7, 1]
