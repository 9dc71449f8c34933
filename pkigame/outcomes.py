"""
pkigame Action & Outcome Model

The three independent two-valued choices of the one-shot game and the
immutable outcome triple that combines them into one play.

The outcome space is closed: exactly 8 outcomes, exposed in a fixed order
as ALL_OUTCOMES.
"""

from dataclasses import dataclass, replace
from enum import Enum
from itertools import product
from typing import Any, Dict, Optional, Tuple


class Registration(str, Enum):
    """Whether the issuing CA registered with the oversight authority."""
    REGISTER = "REGISTER"
    NO_REGISTER = "NO_REGISTER"


class Issuance(str, Enum):
    """Whether the issued certificate conforms to the domain certificate policy."""
    COMPLIANT = "COMPLIANT"
    NON_COMPLIANT = "NON_COMPLIANT"


class Detection(str, Enum):
    """Whether the detector flags the certificate as non-compliant."""
    REPORT = "REPORT"
    NO_REPORT = "NO_REPORT"


class Participant(str, Enum):
    """Players receiving a payoff."""
    CA = "CA"
    DOMAIN = "DOMAIN"
    DETECTOR = "DETECTOR"


# Every coalition that includes the CA and at least one other player
COLLUSION_COALITIONS: Tuple[Tuple[Participant, ...], ...] = (
    (Participant.CA, Participant.DOMAIN),
    (Participant.CA, Participant.DETECTOR),
    (Participant.CA, Participant.DOMAIN, Participant.DETECTOR),
)


@dataclass(frozen=True)
class OneShotOutcome:
    """
    One complete play of the game.

    Fields:
    - registration: CA registration choice
    - issuance: CA issuance choice
    - detection: detector choice
    """
    registration: Registration
    issuance: Issuance
    detection: Detection

    def __post_init__(self):
        # Coerce raw strings so outcomes built from JSON compare equal
        object.__setattr__(self, "registration", Registration(self.registration))
        object.__setattr__(self, "issuance", Issuance(self.issuance))
        object.__setattr__(self, "detection", Detection(self.detection))

    def is_registered(self) -> bool:
        return self.registration == Registration.REGISTER

    def is_non_compliant(self) -> bool:
        return self.issuance == Issuance.NON_COMPLIANT

    def is_reported(self) -> bool:
        return self.detection == Detection.REPORT

    def with_registration(self, registration: Registration) -> 'OneShotOutcome':
        return replace(self, registration=registration)

    def with_issuance(self, issuance: Issuance) -> 'OneShotOutcome':
        return replace(self, issuance=issuance)

    def with_detection(self, detection: Detection) -> 'OneShotOutcome':
        return replace(self, detection=detection)

    @property
    def label(self) -> str:
        return f"{self.registration.value}/{self.issuance.value}/{self.detection.value}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "registration": self.registration.value,
            "issuance": self.issuance.value,
            "detection": self.detection.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OneShotOutcome':
        """Create an outcome from its dictionary form."""
        required = ["registration", "issuance", "detection"]
        missing = [f for f in required if f not in data]
        if missing:
            raise ValueError(f"Missing required fields: {missing}")

        return cls(
            registration=Registration(data["registration"]),
            issuance=Issuance(data["issuance"]),
            detection=Detection(data["detection"]),
        )

    @classmethod
    def from_label(cls, label: str) -> 'OneShotOutcome':
        """Parse "REGISTER/NON_COMPLIANT/REPORT" style labels."""
        parts = [p.strip().upper() for p in label.split("/")]
        if len(parts) != 3:
            raise ValueError(
                f"Invalid outcome label '{label}': "
                "expected REGISTRATION/ISSUANCE/DETECTION"
            )
        return cls(
            registration=Registration(parts[0]),
            issuance=Issuance(parts[1]),
            detection=Detection(parts[2]),
        )

    def __str__(self) -> str:
        return self.label


ALL_OUTCOMES: Tuple[OneShotOutcome, ...] = tuple(
    OneShotOutcome(registration=r, issuance=i, detection=d)
    for r, i, d in product(Registration, Issuance, Detection)
)


def select_outcomes(
    registration: Optional[Registration] = None,
    issuance: Optional[Issuance] = None,
    detection: Optional[Detection] = None
) -> Tuple[OneShotOutcome, ...]:
    """
    Filter the outcome space.

    Any choice left as None is unconstrained, so select_outcomes() returns
    all 8 outcomes.
    """
    return tuple(
        o for o in ALL_OUTCOMES
        if (registration is None or o.registration == registration)
        and (issuance is None or o.issuance == issuance)
        and (detection is None or o.detection == detection)
    )
