"""
Application Events

In-process event bus and the listeners that turn proposal events into
background jobs.
"""

from talk_proposals.application.events.bus import EventBus
from talk_proposals.application.events.listeners import register_listeners

__all__ = ["EventBus", "register_listeners"]
