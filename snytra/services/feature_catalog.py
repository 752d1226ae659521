"""
System feature catalog and feature key / display name conversion.

Plans have historically stored their features either as canonical snake_case
keys ("table_mapping") or as display names ("Table Mapping"), sometimes as an
object keyed by feature, sometimes as a JSON or comma separated string. The
helpers here accept all of those shapes.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class SystemFeature:
    id: str
    name: str
    description: str
    category: str


FEATURE_CATEGORIES = [
    "core",
    "menu_management",
    "order_management",
    "table_management",
    "staff_management",
    "customer_management",
    "reporting",
    "integrations",
    "support",
]

CATEGORY_NAMES = {
    "core": "Core Features",
    "menu_management": "Menu Management",
    "order_management": "Order Management",
    "table_management": "Table Management",
    "staff_management": "Staff Management",
    "customer_management": "Customer Management",
    "reporting": "Reporting & Analytics",
    "integrations": "Integrations",
    "support": "Support",
}

SYSTEM_FEATURES: List[SystemFeature] = [
    # Core
    SystemFeature("online_ordering", "Online Ordering", "Allow customers to place orders online", "core"),
    SystemFeature("qr_code_menus", "QR Code Menus", "Generate QR codes for contactless menu access", "core"),
    SystemFeature("website_integration", "Website Integration", "Embed ordering system into existing website", "core"),
    SystemFeature("mobile_responsive", "Mobile Responsive Interface", "Optimized for mobile devices", "core"),
    SystemFeature("custom_branding", "Custom Branding", "Apply restaurant branding to customer interface", "core"),

    # Menu management
    SystemFeature("menu_items", "Menu Items Management", "Create and manage menu items", "menu_management"),
    SystemFeature("menu_categories", "Menu Categories", "Organize items into categories", "menu_management"),
    SystemFeature("item_variants", "Item Variants", "Create variations of menu items", "menu_management"),
    SystemFeature("item_modifiers", "Item Modifiers", "Add options and add-ons to menu items", "menu_management"),
    SystemFeature("dietary_labels", "Dietary Labels", "Mark items as vegetarian, vegan, gluten-free, etc.", "menu_management"),
    SystemFeature("menu_item_images", "Menu Item Images", "Upload images for menu items", "menu_management"),
    SystemFeature("menu_availability", "Menu Availability", "Set times when items are available", "menu_management"),

    # Order management
    SystemFeature("order_tracking", "Order Tracking", "Track orders from placement to delivery", "order_management"),
    SystemFeature("kitchen_display", "Kitchen Display System", "Display orders in kitchen with preparation instructions", "order_management"),
    SystemFeature("order_notifications", "Order Notifications", "Real-time notifications for new orders", "order_management"),
    SystemFeature("order_history", "Order History", "Access and search past orders", "order_management"),
    SystemFeature("delivery_management", "Delivery Management", "Track and manage deliveries", "order_management"),
    SystemFeature("takeout_management", "Takeout Management", "Manage takeout orders", "order_management"),

    # Table management
    SystemFeature("table_mapping", "Table Mapping", "Create digital floor plan of restaurant", "table_management"),
    SystemFeature("reservations", "Reservations", "Allow customers to reserve tables", "table_management"),
    SystemFeature("table_status", "Table Status Tracking", "Monitor table availability in real-time", "table_management"),
    SystemFeature("waitlist", "Waitlist Management", "Manage customer waitlist", "table_management"),
    SystemFeature("table_service", "Table Service Requests", "Allow customers to request service digitally", "table_management"),

    # Staff management
    SystemFeature("staff_accounts", "Staff Accounts", "Create and manage staff user accounts", "staff_management"),
    SystemFeature("role_permissions", "Role-based Permissions", "Assign different access levels to staff roles", "staff_management"),
    SystemFeature("staff_scheduling", "Staff Scheduling", "Schedule staff shifts and manage availability", "staff_management"),
    SystemFeature("time_tracking", "Time Tracking", "Track staff working hours", "staff_management"),
    SystemFeature("task_management", "Task Management", "Assign and track tasks for staff", "staff_management"),

    # Customer management
    SystemFeature("customer_database", "Customer Database", "Store and manage customer information", "customer_management"),
    SystemFeature("customer_profiles", "Customer Profiles", "View customer order history and preferences", "customer_management"),
    SystemFeature("loyalty_program", "Loyalty Program", "Reward repeat customers with points and offers", "customer_management"),
    SystemFeature("feedback_system", "Feedback System", "Collect and manage customer feedback", "customer_management"),
    SystemFeature("marketing_tools", "Marketing Tools", "Send promotions and updates to customers", "customer_management"),

    # Reporting & analytics
    SystemFeature("sales_reports", "Sales Reports", "Generate reports on sales performance", "reporting"),
    SystemFeature("inventory_reports", "Inventory Reports", "Track inventory levels and usage", "reporting"),
    SystemFeature("menu_performance", "Menu Performance", "Analyze which menu items sell best", "reporting"),
    SystemFeature("customer_analytics", "Customer Analytics", "Analyze customer behavior and preferences", "reporting"),
    SystemFeature("staff_performance", "Staff Performance", "Track staff productivity and performance", "reporting"),
    SystemFeature("export_reports", "Export Reports", "Export reports to CSV or PDF", "reporting"),

    # Integrations
    SystemFeature("payment_processing", "Payment Processing", "Accept online payments via Stripe", "integrations"),
    SystemFeature("accounting_integration", "Accounting Integration", "Integrate with accounting software", "integrations"),
    SystemFeature("pos_integration", "POS Integration", "Connect with point-of-sale systems", "integrations"),
    SystemFeature("delivery_services", "Delivery Services Integration", "Connect with third-party delivery services", "integrations"),
    SystemFeature("inventory_system", "Inventory System Integration", "Connect with inventory management systems", "integrations"),

    # Support
    SystemFeature("email_support", "Email Support", "Access to email support", "support"),
    SystemFeature("priority_support", "Priority Support", "Priority handling of support requests", "support"),
    SystemFeature("phone_support", "Phone Support", "Access to phone support", "support"),
    SystemFeature("dedicated_account", "Dedicated Account Manager", "Assigned account manager for support", "support"),
    SystemFeature("setup_assistance", "Setup Assistance", "Help with initial system setup", "support"),
    SystemFeature("training", "Staff Training", "Training sessions for restaurant staff", "support"),
]

_FEATURES_BY_ID: Dict[str, SystemFeature] = {f.id: f for f in SYSTEM_FEATURES}
_FEATURES_BY_NAME: Dict[str, SystemFeature] = {f.name.lower(): f for f in SYSTEM_FEATURES}

FEATURE_ID_PATTERN = re.compile(r"^[a-z_]+$")


def get_feature(feature_id: str) -> Optional[SystemFeature]:
    return _FEATURES_BY_ID.get(feature_id)


def get_features_by_category(category: str) -> List[SystemFeature]:
    return [f for f in SYSTEM_FEATURES if f.category == category]


def get_features_by_ids(feature_ids: List[str]) -> List[SystemFeature]:
    """Catalog entries for the given keys; unknown keys are dropped"""
    return [_FEATURES_BY_ID[fid] for fid in feature_ids if fid in _FEATURES_BY_ID]


def get_feature_ids(features: List[SystemFeature]) -> List[str]:
    return [f.id for f in features]


def is_feature_id(feature: Any) -> bool:
    """Feature keys are lowercase snake_case, e.g. "customer_analytics" """
    return isinstance(feature, str) and FEATURE_ID_PATTERN.match(feature) is not None


def ensure_features_is_list(features_data: Any) -> Any:
    """
    Normalize a stored ``features`` value.

    Lists and mappings are returned as they are, JSON strings are parsed and
    anything that is not valid JSON is split on commas.
    """
    if features_data is None:
        return []

    if isinstance(features_data, (list, dict)):
        return features_data

    if isinstance(features_data, str):
        try:
            return json.loads(features_data)
        except ValueError:
            return [item.strip() for item in features_data.split(",")]

    return [features_data]


def _id_to_name(feature: Any) -> Any:
    if is_feature_id(feature) and feature in _FEATURES_BY_ID:
        return _FEATURES_BY_ID[feature].name
    return feature


def _name_to_id(feature: Any) -> Any:
    if not isinstance(feature, str) or is_feature_id(feature):
        return feature
    match = _FEATURES_BY_NAME.get(feature.lower())
    return match.id if match else feature


def convert_feature_ids_to_names(features: Any) -> Any:
    """
    Replace feature keys with catalog display names.

    Lists are mapped element-wise, mapping keys are converted with their
    values kept, and strings that are not catalog keys pass through unchanged.
    """
    if features is None:
        return []

    if isinstance(features, list):
        return [_id_to_name(feature) for feature in features]

    if isinstance(features, dict):
        return {_id_to_name(key): value for key, value in features.items()}

    return features


def convert_feature_names_to_ids(features: Any) -> Any:
    """Inverse of convert_feature_ids_to_names; name matching is case-insensitive"""
    if features is None:
        return []

    if isinstance(features, list):
        return [_name_to_id(feature) for feature in features]

    if isinstance(features, dict):
        return {_name_to_id(key): value for key, value in features.items()}

    return features


def normalized_feature_keys(features_data: Any) -> set[str]:
    """Set of canonical keys for a stored features value"""
    features = convert_feature_names_to_ids(ensure_features_is_list(features_data))
    if isinstance(features, dict):
        return {key for key, enabled in features.items() if enabled and isinstance(key, str)}
    if isinstance(features, list):
        return {feature for feature in features if isinstance(feature, str) and feature}
    return set()
