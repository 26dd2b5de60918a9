"""
Wall-clock helpers; every stored or published timestamp is timezone-aware UTC
"""
from datetime import datetime, UTC


def utcnow() -> datetime:
    return datetime.now(UTC)
