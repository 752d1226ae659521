from snytra.models.user import User, UserRole
from snytra.models.subscription_plan import SubscriptionPlan, PlanFeature, BillingInterval
from snytra.models.subscription import Subscription, SubscriptionStatus
from snytra.models.table import Table, TableStatus, TABLE_TRANSITIONS
from snytra.models.reservation import Reservation, ReservationStatus
from snytra.models.waitlist import WaitlistEntry, WaitlistStatus
from snytra.models.reservation_settings import ReservationSettings
from snytra.models.notification_log import NotificationLog
