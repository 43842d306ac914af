from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

EMOTIONS = ("happy", "sad", "angry", "scared", "neutral")


def _as_bool(payload: Dict[str, Any], key: str) -> bool:
    value = payload.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean, got {value!r}")
    return value


def _as_confidence(payload: Dict[str, Any], key: str) -> Optional[float]:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number, got {value!r}")
    return float(value)


@dataclass(frozen=True)
class AnalysisResult:
    """Behavioral analysis returned for one snapshot.

    Confidence fields are None when the service omitted them, so the
    indicator defaults can tell "absent" from "zero".
    """

    fall_detected: bool = False
    fall_confidence: Optional[float] = None
    aggression: bool = False
    aggression_confidence: Optional[float] = None
    risky_behavior: bool = False
    risky_confidence: Optional[float] = None
    emotion: Optional[str] = None
    emotion_confidence: Optional[float] = None

    @classmethod
    def from_dict(cls, payload: Any) -> "AnalysisResult":
        """Build a result from the decoded `/api/analyze` body.

        Raises
        ------
        ValueError
            If the body is not an object or a confidence is not numeric.
        """
        if not isinstance(payload, dict):
            raise ValueError(f"analysis result must be an object, got {payload!r}")
        emotion = payload.get("emotion")
        return cls(
            fall_detected=_as_bool(payload, "fall_detected"),
            fall_confidence=_as_confidence(payload, "fall_confidence"),
            aggression=_as_bool(payload, "aggression"),
            aggression_confidence=_as_confidence(payload, "aggression_confidence"),
            risky_behavior=_as_bool(payload, "risky_behavior"),
            risky_confidence=_as_confidence(payload, "risky_confidence"),
            emotion=emotion if isinstance(emotion, str) else None,
            emotion_confidence=_as_confidence(payload, "emotion_confidence"),
        )


@dataclass(frozen=True)
class Alert:
    """One entry of the service's alert history."""

    issue: str
    confidence: float
    timestamp: Optional[str]
    action: str

    @classmethod
    def from_dict(cls, payload: Any) -> "Alert":
        if not isinstance(payload, dict):
            raise ValueError(f"alert must be an object, got {payload!r}")
        return cls(
            issue=str(payload.get("issue") or ""),
            confidence=_as_confidence(payload, "confidence") or 0.0,
            timestamp=payload.get("timestamp"),
            action=str(payload.get("action") or ""),
        )


@dataclass(frozen=True)
class SystemStatusFlag:
    """Service-side monitoring flag."""

    monitoring_active: bool

    @classmethod
    def from_dict(cls, payload: Any) -> "SystemStatusFlag":
        if not isinstance(payload, dict):
            raise ValueError(f"status must be an object, got {payload!r}")
        return cls(monitoring_active=_as_bool(payload, "monitoring_active"))
