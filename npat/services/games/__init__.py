"""Game domain services: pools, session registry, round coordination and timers.

This package contains pure(ish) domain logic that the Socket.IO handlers
import, keeping transport concerns separated from core game mechanics.
"""
