"""Webhook event handlers for GitHub events."""

from .approve_handler import handle, handle_approve

__all__ = ["handle", "handle_approve"]
