"""
Per-category display state derived from the latest analysis result.

Indicators are recomputed wholesale from a single `AnalysisResult`; nothing is
carried over between ticks. `baseline_indicators()` is the state shown before
the first result and after a session stops.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .models import EMOTIONS, AnalysisResult

DEFAULT_COLOR = "default"

EMOTION_ICONS: Dict[str, str] = {
    "happy": "\U0001F60A",
    "sad": "\U0001F622",
    "angry": "\U0001F620",
    "scared": "\U0001F628",
    "neutral": "\U0001F610",
}

EMOTION_COLORS: Dict[str, str] = {
    "happy": "success",
    "sad": "info",
    "angry": "danger",
    "scared": "warning",
    "neutral": "secondary",
}


@dataclass(frozen=True)
class IndicatorState:
    """Display state of one indicator card.

    Attributes
    ----------
    active : bool
        Whether the card shows its alarm styling.
    label : str
        Status text.
    color : str
        Named color of the status text.
    fill : float
        Confidence bar fill in percent, within [0, 100].
    bar_color : str
        Named color of the confidence bar.
    icon : str
        Optional glyph (emotion only).
    """

    active: bool
    label: str
    color: str
    fill: float
    bar_color: str
    icon: str = ""


@dataclass(frozen=True)
class Indicators:
    fall: IndicatorState
    aggression: IndicatorState
    risky: IndicatorState
    emotion: IndicatorState

    def as_dict(self) -> Dict[str, IndicatorState]:
        return {
            "fall": self.fall,
            "aggression": self.aggression,
            "risky": self.risky,
            "emotion": self.emotion,
        }


def _fill(confidence: Optional[float], default: float = 0.0) -> float:
    if confidence is None:
        confidence = default
    return min(100.0, max(0.0, confidence * 100.0))


def _flag(
    active: bool,
    confidence: Optional[float],
    on_label: str,
    off_label: str,
    on_color: str,
) -> IndicatorState:
    return IndicatorState(
        active=active,
        label=on_label if active else off_label,
        color=on_color if active else DEFAULT_COLOR,
        fill=_fill(confidence),
        bar_color=on_color if active else "success",
    )


def derive_indicators(result: AnalysisResult) -> Indicators:
    """Map an analysis result onto the four indicator cards."""
    emotion = result.emotion if result.emotion in EMOTIONS else "neutral"
    return Indicators(
        fall=_flag(
            result.fall_detected,
            result.fall_confidence,
            "FALL DETECTED!",
            "No Fall Detected",
            "danger",
        ),
        aggression=_flag(
            result.aggression,
            result.aggression_confidence,
            "AGGRESSION DETECTED!",
            "Normal Behavior",
            "warning",
        ),
        risky=_flag(
            result.risky_behavior,
            result.risky_confidence,
            "RISKY BEHAVIOR!",
            "Safe Position",
            "amber",
        ),
        emotion=IndicatorState(
            active=False,
            label=emotion.capitalize(),
            color=EMOTION_COLORS[emotion],
            fill=_fill(result.emotion_confidence, default=0.5),
            bar_color=EMOTION_COLORS[emotion],
            icon=EMOTION_ICONS[emotion],
        ),
    )


def baseline_indicators() -> Indicators:
    """Inactive cards with empty bars, independent of any prior result."""
    return Indicators(
        fall=IndicatorState(False, "No Fall Detected", DEFAULT_COLOR, 0.0, DEFAULT_COLOR),
        aggression=IndicatorState(False, "Normal Behavior", DEFAULT_COLOR, 0.0, DEFAULT_COLOR),
        risky=IndicatorState(False, "Safe Position", DEFAULT_COLOR, 0.0, DEFAULT_COLOR),
        emotion=IndicatorState(
            False, "Neutral", DEFAULT_COLOR, 0.0, DEFAULT_COLOR, EMOTION_ICONS["neutral"]
        ),
    )
