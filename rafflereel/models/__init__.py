from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .registration import Registration, RegistrationSource  # noqa: F401

__all__ = [
    "Base",
    "Registration",
    "RegistrationSource",
]
