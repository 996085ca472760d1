"""Background traffic contacts introduced by scenario events."""

from digitalatc.traffic.manager import TrafficManager
from digitalatc.traffic.movement import TrafficContact, TrafficMovement, TrafficPosition

__all__ = ["TrafficContact", "TrafficManager", "TrafficMovement", "TrafficPosition"]
