"""
API Endpoint URL Constants

This module defines the URL paths used throughout the application
for accessing the different resources of the bus tracker.
"""

# -------------------------------
# Authentication
# -------------------------------
URL_SIGNUP = "/auth/signup"
URL_LOGIN = "/auth/login"

# -------------------------------
# Bus location
# -------------------------------
URL_LOCATION_UPDATE = "/location/update"
URL_LOCATION_STATUS = "/location/status"
URL_LOCATION = "/location/{busNumber}"

# -------------------------------
# Route registry
# -------------------------------
URL_ROUTE = "/route"
URL_ROUTE_STOP = "/route/stop"
