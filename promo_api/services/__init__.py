"""
High-level use cases for the GibiPromo API.

Each service module orchestrates the repository to implement one vertical
(auth, products, notifications, profile, preferences, account linking,
product actions). Routers only validate input and shape the envelope.
"""
