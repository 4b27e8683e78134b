"""Role and status values shared by models, schemas and services"""

ROLE_CUSTOMER = "customer"
ROLE_PROFESSIONAL = "professional"
ROLE_ADMIN = "admin"
USER_ROLES = (ROLE_CUSTOMER, ROLE_PROFESSIONAL, ROLE_ADMIN)
# Roles a user can pick for themselves at sign-up
SELF_SERVICE_ROLES = (ROLE_CUSTOMER, ROLE_PROFESSIONAL)

# Booking lifecycle
BOOKING_PENDING = "pending"
BOOKING_CONFIRMED = "confirmed"
BOOKING_IN_PROGRESS = "in_progress"
BOOKING_COMPLETED = "completed"
BOOKING_CANCELLED = "cancelled"
BOOKING_REFUNDED = "refunded"
BOOKING_STATUSES = (
    BOOKING_PENDING,
    BOOKING_CONFIRMED,
    BOOKING_IN_PROGRESS,
    BOOKING_COMPLETED,
    BOOKING_CANCELLED,
    BOOKING_REFUNDED,
)
# Bookings that still hold a professional's time
ACTIVE_BOOKING_STATUSES = (BOOKING_PENDING, BOOKING_CONFIRMED, BOOKING_IN_PROGRESS)
CUSTOMER_CANCELLABLE_STATUSES = (BOOKING_PENDING, BOOKING_CONFIRMED)
# Status changes a professional may make on an assigned booking
PROFESSIONAL_TRANSITIONS = {
    BOOKING_PENDING: (BOOKING_CONFIRMED, BOOKING_CANCELLED),
    BOOKING_CONFIRMED: (BOOKING_IN_PROGRESS, BOOKING_CANCELLED),
    BOOKING_IN_PROGRESS: (BOOKING_COMPLETED,),
}

PAYMENT_PENDING = "pending"
PAYMENT_PROCESSING = "processing"
PAYMENT_COMPLETED = "completed"
PAYMENT_FAILED = "failed"
PAYMENT_REFUNDED = "refunded"
PAYMENT_CANCELLED = "cancelled"
PAYMENT_STATUSES = (
    PAYMENT_PENDING,
    PAYMENT_PROCESSING,
    PAYMENT_COMPLETED,
    PAYMENT_FAILED,
    PAYMENT_REFUNDED,
    PAYMENT_CANCELLED,
)

PAYMENT_METHODS = ("credit_card", "debit_card", "upi", "wallet", "net_banking", "cash")

SERVICE_STATUSES = ("active", "inactive", "suspended")
SLOT_STATUSES = ("available", "booked", "unavailable")
DOCUMENT_STATUSES = ("pending", "approved", "rejected")
DOCUMENT_TYPES = ("id_proof", "address_proof", "certification", "other")
BANK_ACCOUNT_TYPES = ("savings", "current")

# Audit trail action types
ACTION_USER_SUSPENDED = "user_suspended"
ACTION_USER_ACTIVATED = "user_activated"
ACTION_SERVICE_CREATED = "service_created"
ACTION_SERVICE_UPDATED = "service_updated"
ACTION_SERVICE_DELETED = "service_deleted"
ACTION_BOOKING_CANCELLED = "booking_cancelled"
ACTION_PAYMENT_REFUNDED = "payment_refunded"
ACTION_REVIEW_REMOVED = "review_removed"
ACTION_OTHER = "other"
ADMIN_ACTION_TYPES = (
    ACTION_USER_SUSPENDED,
    ACTION_USER_ACTIVATED,
    ACTION_SERVICE_CREATED,
    ACTION_SERVICE_UPDATED,
    ACTION_SERVICE_DELETED,
    ACTION_BOOKING_CANCELLED,
    ACTION_PAYMENT_REFUNDED,
    ACTION_REVIEW_REMOVED,
    ACTION_OTHER,
)

HOMEPAGE_SECTION_TYPES = (
    "hero",
    "features",
    "services",
    "testimonials",
    "cta",
    "stats",
    "how_it_works",
    "partners",
)
PAGE_CONTENT_TYPES = ("text", "html", "json", "image")
