"""
RR Nagar Backend — Password Authentication Service
====================================================

What:  bcrypt password hashing and email/password login for the three
       account kinds.
How:   Hashing and checking run in Starlette's threadpool so the event loop
       is not blocked by bcrypt's work factor (BCRYPT_ROUNDS).
Who:   The /api/*/auth/login routes and the seed command.
"""

import logging
from typing import Optional, Type, Union

import bcrypt
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from marketplace.config import settings
from marketplace.exceptions import AuthenticationError
from marketplace.models.account import Admin, Customer, Supplier

logger = logging.getLogger(__name__)

Account = Union[Customer, Supplier, Admin]

ACCOUNT_MODELS = {
    "customer": Customer,
    "supplier": Supplier,
    "admin": Admin,
}

INVALID_CREDENTIALS = "Invalid email or password"


def hash_password(password: str) -> str:
    hashed = bcrypt.hashpw(
        password.encode("utf-8"), bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    )
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """False for a missing or malformed hash instead of raising."""
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


class AuthService:

    async def authenticate(
        self, db: AsyncSession, role: str, email: str, password: str
    ) -> Account:
        """
        Look up an account of the given kind by email (case-insensitive)
        and check its password.

        Raises:
            AuthenticationError("Invalid email or password") for an unknown
            email, an account without a password, or a wrong password.
        """
        model: Type[Account] = ACCOUNT_MODELS[role]
        result = await db.execute(
            select(model).where(func.lower(model.email) == email.strip().lower())
        )
        account = result.scalars().first()

        if account is None:
            logger.info("Login failed for %s: unknown email", role)
            raise AuthenticationError(message=INVALID_CREDENTIALS)

        if not await run_in_threadpool(verify_password, password, account.password_hash):
            logger.info("Login failed for %s %s: bad password", role, account.id)
            raise AuthenticationError(message=INVALID_CREDENTIALS)

        logger.info("Login succeeded for %s %s", role, account.id)
        return account


auth_service = AuthService()
