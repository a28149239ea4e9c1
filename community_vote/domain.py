"""Value objects shared by the token, session and voting services."""
from dataclasses import dataclass
from datetime import datetime, timezone

CHOICE_AGREE = "agree"
CHOICE_DISAGREE = "disagree"
VALID_CHOICES = (CHOICE_AGREE, CHOICE_DISAGREE)


@dataclass(frozen=True)
class ResidentId:
    """
    Identity of a household: building code, door number and floor.

    Compared field by field. ``str()`` is for display only and is never
    parsed back, so separators inside a field cannot collide.
    """
    building_code: str
    unit_number: str
    floor_number: int

    def __str__(self) -> str:
        return f"{self.building_code}-{self.unit_number}-{self.floor_number}"

    def as_dict(self) -> dict:
        return {
            "building": self.building_code,
            "unit_number": self.unit_number,
            "floor": self.floor_number,
        }


@dataclass(frozen=True)
class ResidentClaim:
    building_code: str
    unit_number: str
    floor_number: int
    expires_at_epoch: int

    @property
    def resident(self) -> ResidentId:
        return ResidentId(self.building_code, self.unit_number, self.floor_number)

    @property
    def expires_at(self) -> datetime:
        """Naive UTC, matching the timestamps stored in the database."""
        return datetime.fromtimestamp(self.expires_at_epoch, tz=timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class ResidentSession:
    building_code: str
    unit_number: str
    floor_number: int
    token_expires_at: datetime

    @classmethod
    def from_claim(cls, claim: ResidentClaim) -> "ResidentSession":
        return cls(
            building_code=claim.building_code,
            unit_number=claim.unit_number,
            floor_number=claim.floor_number,
            token_expires_at=claim.expires_at,
        )

    @property
    def resident(self) -> ResidentId:
        return ResidentId(self.building_code, self.unit_number, self.floor_number)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.token_expires_at

    def to_record(self) -> dict:
        return {
            "building": self.building_code,
            "unitNumber": self.unit_number,
            "floor": self.floor_number,
            "tokenExpiresAt": self.token_expires_at.isoformat() + "Z",
        }

    @classmethod
    def from_record(cls, record: dict) -> "ResidentSession":
        expires = record["tokenExpiresAt"]
        if expires.endswith("Z"):
            expires = expires[:-1]
        return cls(
            building_code=str(record["building"]),
            unit_number=str(record["unitNumber"]),
            floor_number=int(record["floor"]),
            token_expires_at=datetime.fromisoformat(expires),
        )


@dataclass(frozen=True)
class PollResult:
    poll_id: str
    agree_count: int
    disagree_count: int

    @property
    def total_votes(self) -> int:
        return self.agree_count + self.disagree_count

    @property
    def agree_percent(self) -> int:
        return round(self.agree_count / self.total_votes * 100) if self.total_votes else 0

    @property
    def disagree_percent(self) -> int:
        return round(self.disagree_count / self.total_votes * 100) if self.total_votes else 0
