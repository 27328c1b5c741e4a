"""HTTP routers for the storefront API."""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Shared so route modules can decorate handlers before the app exists
limiter = Limiter(key_func=get_remote_address)
