"""
Lavandaria API — Authentication & Authorization
=================================================

    roles.py      Role enum and the can_manage lookup table
    session.py    Principal read from / written to the signed session cookie
    guards.py     FastAPI dependencies that gate routes by role
    passwords.py  bcrypt hashing helpers
"""
