"""
Authentication: password hashing, sign-up/sign-in, admin re-verification
and the in-process session registry.
"""
