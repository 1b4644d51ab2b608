"""
Healthbook

Healthcare appointment booking backend split into five FastAPI services
(users, doctors, appointments, feedback and notifications) that talk to each
other over plain HTTP.
"""

__version__ = "1.0.0"
