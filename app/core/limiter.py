from slowapi import Limiter

from app.features.users.dependencies import get_authorization_header


# Shared by main.py (app.state) and the routes that mutate grant sets
limiter = Limiter(key_func=get_authorization_header)
