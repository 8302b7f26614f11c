"""Authentication.

Learn: Accounts sign in with email/password and receive a JWT bearer
token. The token alone proves identity on later requests; the auth gate
(dependencies.py) verifies it and resolves the account into an Identity
that every contact query is scoped to.
"""
