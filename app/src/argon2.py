from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, InvalidHashError

from app.src.constants import (
    ARGON2_TIME_COST,
    ARGON2_MEMORY_COST,
    ARGON2_PARALLELISM,
)

passwordHasher = PasswordHasher(
    time_cost=ARGON2_TIME_COST,
    memory_cost=ARGON2_MEMORY_COST,
    parallelism=ARGON2_PARALLELISM,
    encoding="utf-8",
)


def makePassword(password: str) -> str:
    """
    Hash a plain-text password using Argon2.

    A fresh random salt is generated for every call, so hashing the same
    password twice yields two different strings.

    Args:
        password (str): The plain-text password to be hashed.

    Returns:
        str: The Argon2 hash of the given password.
    """
    return passwordHasher.hash(password)


def checkPassword(password: str, actual_password: str) -> bool:
    """
    Verify a plain-text password against a stored Argon2 hash.

    Args:
        password (str): The plain-text password to check.
        actual_password (str): The stored Argon2 hash of the password.

    Returns:
        bool: True if the password matches the hash, False otherwise.
    """
    try:
        passwordHasher.verify(actual_password, password)
        return True
    except (VerifyMismatchError, InvalidHashError):
        return False
