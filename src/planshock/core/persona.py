# src/planshock/core/persona.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final


class NagStyle(StrEnum):
    DRILL_SERGEANT = "drill_sergeant"
    SARCASTIC_FRIEND = "sarcastic_friend"
    FACT_PROFESSOR = "fact_professor"
    CUTE_BUT_BLUNT = "cute_but_blunt"
    TSUNDERE = "tsundere"

    @classmethod
    def lookup(cls, raw: str | None) -> NagStyle | None:
        """
        Accept enum values, enum names (any case, "-" or " " for "_") and the
        Korean labels older clients stored. Unknown input -> None.
        """
        if not raw:
            return None
        s = raw.strip()
        if s in _KOREAN_LABELS:
            return _KOREAN_LABELS[s]
        norm = s.lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(norm)
        except ValueError:
            return None

    @classmethod
    def parse(cls, raw: str | None, default: NagStyle | None = None) -> NagStyle:
        style = cls.lookup(raw)
        if style is not None:
            return style
        return default if default is not None else cls.DRILL_SERGEANT


_KOREAN_LABELS: Final[dict[str, NagStyle]] = {
    "개빡센 잔소리형": NagStyle.DRILL_SERGEANT,
    "비꼬는 친구형": NagStyle.SARCASTIC_FRIEND,
    "팩트폭격 교수형": NagStyle.FACT_PROFESSOR,
    "귀엽지만 할 말 다하는형": NagStyle.CUTE_BUT_BLUNT,
    "츤데레형": NagStyle.TSUNDERE,
}


STYLE_PERSONAS: Final[dict[NagStyle, str]] = {
    NagStyle.DRILL_SERGEANT: (
        "You are an uncompromising, hyper-demanding commander. You speak as if every second wasted "
        "permanently destroys the user's future. Your tone is cold, urgent, and final. Every message "
        "should feel like a last warning before failure becomes permanent."
    ),
    NagStyle.SARCASTIC_FRIEND: (
        "You are a painfully perceptive, brutally observant friend. You point out the user's patterns, "
        "flaws, and excuses with surgical sarcasm. Subtly imply that others are already ahead while "
        "they are falling behind again."
    ),
    NagStyle.FACT_PROFESSOR: (
        "You are a data-obsessed, emotionless authority. You quantify the user's time-wasting into "
        "concrete losses: opportunities, rankings, income, and life outcomes. Every statement should "
        "feel like an inescapable conclusion backed by numbers."
    ),
    NagStyle.CUTE_BUT_BLUNT: (
        "You sound soft, sweet, and harmless, but what you say quietly destroys comforting illusions. "
        "In a gentle, adorable tone, describe exactly how the user is betraying their own potential."
    ),
    NagStyle.TSUNDERE: (
        "You act irritated and unimpressed, as if the user constantly disappoints you. Yet your words "
        "reveal that you expected far more. Make them want to earn back your respect."
    ),
}

# OpenAI TTS voice per style; the synthesizer falls back to the default voice.
STYLE_VOICES: Final[dict[NagStyle, str]] = {
    NagStyle.DRILL_SERGEANT: "alloy",
    NagStyle.SARCASTIC_FRIEND: "shimmer",
    NagStyle.FACT_PROFESSOR: "verse",
    NagStyle.CUTE_BUT_BLUNT: "shimmer",
    NagStyle.TSUNDERE: "verse",
}


@dataclass(slots=True, frozen=True)
class PlaybackPreset:
    rate: float = 1.0
    volume: float = 1.0


STYLE_PRESETS: Final[dict[NagStyle, PlaybackPreset]] = {
    NagStyle.DRILL_SERGEANT: PlaybackPreset(rate=1.15, volume=1.0),
    NagStyle.SARCASTIC_FRIEND: PlaybackPreset(rate=1.1, volume=0.95),
    NagStyle.FACT_PROFESSOR: PlaybackPreset(rate=1.0, volume=1.0),
    NagStyle.CUTE_BUT_BLUNT: PlaybackPreset(rate=1.2, volume=0.9),
    NagStyle.TSUNDERE: PlaybackPreset(rate=0.95, volume=0.85),
}


def preset_for(style: NagStyle) -> PlaybackPreset:
    return STYLE_PRESETS.get(style, PlaybackPreset())


_LANGUAGE_NAMES: Final[dict[str, str]] = {"en": "English", "ko": "Korean"}


def language_name(locale: str) -> str:
    return _LANGUAGE_NAMES.get(locale, "English")


def nag_system_prompt(locale: str) -> str:
    lang = language_name(locale)
    return (
        "You generate short, provocative nagging quotes that push users to finish their tasks. "
        f"Always respond in {lang}."
    )


def summary_system_prompt(locale: str) -> str:
    lang = language_name(locale)
    return f"You are a productivity coach who gives sharp and provocative advice. Always respond in {lang}."
