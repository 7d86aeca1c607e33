"""Notification adapters."""

from site_monitor.adapters.notifications.alert_formatter import HtmlAlertFormatter
from site_monitor.adapters.notifications.email_sender import HttpEmailSender

__all__ = ["HtmlAlertFormatter", "HttpEmailSender"]
