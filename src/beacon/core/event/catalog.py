"""
Event name catalog.

Central registry of the event names producers publish on the bus, grouped
by namespace. Names follow the `namespace:action` convention, so a consumer
interested in a whole namespace subscribes to `namespace_pattern(...)`
(for example `"lead:*"`).

Using these constants instead of string literals keeps typos out of
subscriptions; the bus itself accepts any non-empty string.
"""

from __future__ import annotations

from typing import Any, Optional


class AuthEvents:
    SIGNED_IN = "auth:signed-in"
    SIGNED_OUT = "auth:signed-out"
    TOKEN_REFRESHED = "auth:token-refreshed"
    USER_UPDATED = "auth:user-updated"
    CREDITS_UPDATED = "auth:credits-updated"
    SESSION_INVALID = "auth:session-invalid"
    SESSION_VALIDATED = "auth:session-validated"


class BusinessEvents:
    CREATED = "business:created"
    UPDATED = "business:updated"
    DELETED = "business:deleted"
    SELECTED = "business:selected"
    CHANGED = "business:changed"
    SETTINGS_UPDATED = "business:settings-updated"
    TEAM_MEMBER_ADDED = "business:team-member-added"
    TEAM_MEMBER_REMOVED = "business:team-member-removed"


class LeadEvents:
    CREATED = "lead:created"
    UPDATED = "lead:updated"
    DELETED = "lead:deleted"
    ANALYZED = "lead:analyzed"
    ANALYSIS_STARTED = "lead:analysis-started"
    ANALYSIS_COMPLETED = "lead:analysis-completed"
    ANALYSIS_FAILED = "lead:analysis-failed"
    BULK_CREATED = "lead:bulk-created"
    BULK_UPDATED = "lead:bulk-updated"
    BULK_DELETED = "lead:bulk-deleted"
    FILTERED = "lead:filtered"
    SORTED = "lead:sorted"
    SELECTED = "lead:selected"
    DESELECTED = "lead:deselected"
    TAG_ADDED = "lead:tag-added"
    TAG_REMOVED = "lead:tag-removed"
    NOTE_ADDED = "lead:note-added"
    STATUS_CHANGED = "lead:status-changed"


class AnalyticsEvents:
    UPDATED = "analytics:updated"
    REFRESH_STARTED = "analytics:refresh-started"
    REFRESH_COMPLETED = "analytics:refresh-completed"
    REFRESH_FAILED = "analytics:refresh-failed"
    REPORT_GENERATED = "analytics:report-generated"
    EXPORT_STARTED = "analytics:export-started"
    EXPORT_COMPLETED = "analytics:export-completed"


class UIEvents:
    MODAL_OPENED = "ui:modal-opened"
    MODAL_CLOSED = "ui:modal-closed"
    TOAST_SHOWN = "ui:toast-shown"
    TOAST_DISMISSED = "ui:toast-dismissed"
    LOADING_STARTED = "ui:loading-started"
    LOADING_COMPLETED = "ui:loading-completed"
    SIDEBAR_TOGGLED = "ui:sidebar-toggled"
    SIDEBAR_COLLAPSED = "ui:sidebar-collapsed"
    SIDEBAR_EXPANDED = "ui:sidebar-expanded"
    THEME_CHANGED = "ui:theme-changed"
    TAB_CHANGED = "ui:tab-changed"
    FILTER_APPLIED = "ui:filter-applied"
    FILTER_CLEARED = "ui:filter-cleared"


class StateEvents:
    UPDATED = "state:updated"
    RESET = "state:reset"
    HYDRATED = "state:hydrated"
    PERSISTED = "state:persisted"
    ERROR = "state:error"


class FormEvents:
    SUBMITTED = "form:submitted"
    VALIDATED = "form:validated"
    VALIDATION_FAILED = "form:validation-failed"
    FIELD_CHANGED = "form:field-changed"
    FIELD_BLURRED = "form:field-blurred"
    RESET = "form:reset"
    ERROR = "form:error"


class RealtimeEvents:
    CONNECTED = "realtime:connected"
    DISCONNECTED = "realtime:disconnected"
    RECONNECTING = "realtime:reconnecting"
    ERROR = "realtime:error"
    MESSAGE = "realtime:message"
    LEAD_CREATED = "realtime:lead-created"
    LEAD_UPDATED = "realtime:lead-updated"
    LEAD_DELETED = "realtime:lead-deleted"


class NotificationEvents:
    RECEIVED = "notification:received"
    READ = "notification:read"
    DISMISSED = "notification:dismissed"
    CLEARED_ALL = "notification:cleared-all"


class CampaignEvents:
    CREATED = "campaign:created"
    UPDATED = "campaign:updated"
    DELETED = "campaign:deleted"
    STARTED = "campaign:started"
    PAUSED = "campaign:paused"
    COMPLETED = "campaign:completed"
    LEAD_ADDED = "campaign:lead-added"
    LEAD_REMOVED = "campaign:lead-removed"


class AutomationEvents:
    CREATED = "automation:created"
    UPDATED = "automation:updated"
    DELETED = "automation:deleted"
    ENABLED = "automation:enabled"
    DISABLED = "automation:disabled"
    TRIGGERED = "automation:triggered"
    COMPLETED = "automation:completed"
    FAILED = "automation:failed"


class SubscriptionEvents:
    CREATED = "subscription:created"
    UPDATED = "subscription:updated"
    CANCELLED = "subscription:cancelled"
    RENEWED = "subscription:renewed"
    PAYMENT_SUCCEEDED = "subscription:payment-succeeded"
    PAYMENT_FAILED = "subscription:payment-failed"
    TRIAL_STARTED = "subscription:trial-started"
    TRIAL_ENDING = "subscription:trial-ending"
    TRIAL_ENDED = "subscription:trial-ended"


class SystemEvents:
    INITIALIZED = "system:initialized"
    READY = "system:ready"
    ERROR = "system:error"
    ONLINE = "system:online"
    OFFLINE = "system:offline"
    MAINTENANCE_MODE = "system:maintenance-mode"
    UPDATE_AVAILABLE = "system:update-available"


class AdminEvents:
    SECTION_CHANGED = "admin:section-changed"
    USER_IMPERSONATED = "admin:user-impersonated"
    FEATURE_TOGGLED = "admin:feature-toggled"
    CONFIG_UPDATED = "admin:config-updated"


class OnboardingEvents:
    STARTED = "onboarding:started"
    STEP_COMPLETED = "onboarding:step-completed"
    COMPLETED = "onboarding:completed"
    SKIPPED = "onboarding:skipped"


CATEGORIES: dict[str, type] = {
    "AUTH": AuthEvents,
    "BUSINESS": BusinessEvents,
    "LEAD": LeadEvents,
    "ANALYTICS": AnalyticsEvents,
    "UI": UIEvents,
    "STATE": StateEvents,
    "FORM": FormEvents,
    "REALTIME": RealtimeEvents,
    "NOTIFICATION": NotificationEvents,
    "CAMPAIGN": CampaignEvents,
    "AUTOMATION": AutomationEvents,
    "SUBSCRIPTION": SubscriptionEvents,
    "SYSTEM": SystemEvents,
    "ADMIN": AdminEvents,
    "ONBOARDING": OnboardingEvents,
}


def events_in(category: str) -> dict[str, str]:
    """
    Constant name → event name for one category; empty for unknown ones.

    >>> events_in("STATE")["RESET"]
    'state:reset'
    """
    namespace = CATEGORIES.get(category.upper())
    if namespace is None:
        return {}
    return {
        key: value
        for key, value in vars(namespace).items()
        if key.isupper() and isinstance(value, str)
    }


def all_events() -> list[str]:
    """Every cataloged event name, category by category."""
    return [name for category in CATEGORIES for name in events_in(category).values()]


def is_known_event(event_name: str) -> bool:
    return event_name in all_events()


def category_for_event(event_name: str) -> Optional[str]:
    """
    Category holding `event_name`, or None if it is not cataloged.

    >>> category_for_event("campaign:paused")
    'CAMPAIGN'
    """
    for category in CATEGORIES:
        if event_name in events_in(category).values():
            return category
    return None


def catalog_stats() -> dict[str, Any]:
    """Category count, event count and per-category event counts."""
    by_category = {category: len(events_in(category)) for category in CATEGORIES}
    return {
        "total_categories": len(by_category),
        "total_events": sum(by_category.values()),
        "by_category": by_category,
    }


def namespace_pattern(category: str) -> str:
    """
    Pattern matching every event of a category.

    >>> namespace_pattern("lead")
    'lead:*'
    """
    return f"{category.lower()}:*"
