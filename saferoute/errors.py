"""Failures raised by the I/O collaborators around the scoring engine."""


class SafeRouteError(Exception):
    """Base class for all Safe Route errors"""


class AddressNotFound(SafeRouteError):
    """Geocoder returned no match for a free-text address"""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Could not find: {address}")


class NoRouteFound(SafeRouteError):
    """Routing service returned no usable route"""


class IncidentFeedError(SafeRouteError):
    """Crime feed unreachable and no cached copy available"""
