"""
Core utilities shared across the GibiPromo API.

Configuration, logging setup, security helpers (password hashing and JWT),
the response envelope, the in-memory cache and the rate limiter live here so
routers and services do not read os.environ or build JSON bodies by hand.
"""
