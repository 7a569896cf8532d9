import secrets

import bcrypt


class PasswordHelper:
    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password using bcrypt."""
        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    @staticmethod
    def check_password(password: str, hashed_password: str) -> bool:
        """Check if a password matches the hashed version."""
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))


def generate_numeric_code(length: int = 6) -> str:
    """Random digit string for one-time codes."""
    return "".join(secrets.choice("0123456789") for _ in range(length))
