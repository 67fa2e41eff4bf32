"""
Event system for decoupling UI from business logic.
"""

from .event_system import EventType, Event, EventBus, get_event_bus

__all__ = ['EventType', 'Event', 'EventBus', 'get_event_bus']
