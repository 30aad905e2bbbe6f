"""Password hashing; the hash runs in the threadpool so it never blocks the event loop."""
from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


async def hash_password(password: str) -> str:
    return await run_in_threadpool(pwd_context.hash, password)


async def verify_password(password: str, password_hash: str) -> bool:
    """Return True when *password* matches *password_hash*; malformed hashes never match."""
    try:
        return await run_in_threadpool(pwd_context.verify, password, password_hash)
    except (ValueError, TypeError):
        return False
