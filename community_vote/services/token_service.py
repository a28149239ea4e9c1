"""Signed, expiring resident login tokens."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import quote

import jwt
from flask import current_app

from ..domain import ResidentClaim
from ..utils.clock import utcnow

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_VALIDITY = timedelta(hours=2)


class ResidentTokenService:
    def __init__(self, secret: str):
        if not secret:
            raise ValueError("Resident token secret must not be empty")
        self._secret = secret

    def issue(self, building_code: str, unit_number: str, floor_number: int,
              now: Optional[datetime] = None) -> str:
        """
        Sign a claim for one household, valid for two hours from ``now``.

        ``now`` is naive UTC (defaults to the current time).
        """
        issued = now or utcnow()
        iat = int(issued.replace(tzinfo=timezone.utc).timestamp())
        payload = {
            "building": building_code,
            "unitNumber": unit_number,
            "floor": int(floor_number),
            "iat": iat,
            "exp": iat + int(TOKEN_VALIDITY.total_seconds()),
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: Optional[str]) -> Optional[ResidentClaim]:
        """
        Decode a resident token.

        Returns None for a missing, malformed, tampered or expired token;
        verification failures never propagate to the caller.
        """
        if not token:
            return None

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("Resident token expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.info("Resident token rejected: %s", e)
            return None

        building = payload.get("building")
        unit = payload.get("unitNumber")
        floor = payload.get("floor")
        if not isinstance(building, str) or not building:
            return None
        if not isinstance(unit, str) or not unit:
            return None
        if isinstance(floor, bool) or not isinstance(floor, int):
            return None

        return ResidentClaim(
            building_code=building,
            unit_number=unit,
            floor_number=floor,
            expires_at_epoch=int(payload["exp"]),
        )


def login_link(token: str, origin: str) -> str:
    return f"{origin.rstrip('/')}/#/login?token={quote(token, safe='')}"


def resident_tokens() -> ResidentTokenService:
    return ResidentTokenService(current_app.config["RESIDENT_TOKEN_SECRET"])
