"""Room domain services: aggregation, round transitions, timers, venues.

Socket handlers and HTTP routes import from here so transport concerns
stay out of the room state machine.
"""
