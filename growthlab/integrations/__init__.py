"""External integrations."""

from growthlab.integrations.notifier import WebhookNotifier

__all__ = ["WebhookNotifier"]
