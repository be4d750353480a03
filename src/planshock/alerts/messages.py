# src/planshock/alerts/messages.py

"""
Template nag lines.

These are the deterministic fallback for the LLM path and the only source of
text when no API key is configured.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Final

from ..core.persona import NagStyle
from ..tasks.task_models import Task
from .durations import format_duration

ONE_DAY: Final[timedelta] = timedelta(days=1)


class NagRule(StrEnum):
    CRITICAL = "CRITICAL"
    PROCRASTINATING = "PROCRASTINATING"
    NORMAL = "NORMAL"


@dataclass(slots=True, frozen=True)
class NagPayload:
    """Task snapshot as the message generators see it (gaps filled with defaults)."""

    title: str
    due: datetime
    estimated_hours: float
    created_at: datetime

    @classmethod
    def from_task(cls, task: Task, now: datetime) -> NagPayload:
        return cls(
            title=task.display_name,
            due=task.deadline if task.deadline is not None else now + timedelta(hours=1),
            estimated_hours=task.estimated_hours if task.estimated_hours is not None else 1.0,
            created_at=task.created_at,
        )


@dataclass(slots=True, frozen=True)
class TemplateContext:
    title: str
    due_text: str
    elapsed_text: str
    overdue: bool
    hours: str

    @property
    def hour_phrase(self) -> str:
        return f"{self.hours} hour" if self.hours == "1" else f"{self.hours} hours"


def determine_nag_rule(payload: NagPayload, now: datetime) -> NagRule:
    if payload.due - now <= ONE_DAY:
        return NagRule.CRITICAL
    if now - payload.created_at >= 2 * ONE_DAY:
        return NagRule.PROCRASTINATING
    return NagRule.NORMAL


def _hours(value: float) -> str:
    return f"{value:g}"


_Template = Callable[[TemplateContext], str]

_EN_TEMPLATES: Final[dict[NagStyle, dict[NagRule, _Template]]] = {
    NagStyle.DRILL_SERGEANT: {
        NagRule.CRITICAL: lambda c: (
            f'"{c.title}" is past its deadline and you are still sitting there? '
            f"If you can't find {c.hour_phrase}, start over from scratch."
            if c.overdue
            else f'"{c.title}" is due in {c.due_text}? {c.hour_phrase} of work will not fit. Start now.'
        ),
        NagRule.PROCRASTINATING: lambda c: (
            f'"{c.title}" has been sitting there for {c.elapsed_text} and you have done nothing. '
            "Impressive. Planning to keep failing at this pace?"
        ),
        NagRule.NORMAL: lambda c: (
            f'"{c.title}" takes {c.hour_phrase}. Stop worrying and start typing.'
        ),
    },
    NagStyle.SARCASTIC_FRIEND: {
        NagRule.CRITICAL: lambda c: (
            f'Oh, "{c.title}" already blew its deadline? No worries, you always do this. Betting on a miracle again?'
            if c.overdue
            else f'Relaxing with "{c.title}" due in {c.due_text}? A true master of time management.'
        ),
        NagRule.PROCRASTINATING: lambda c: (
            f'"{c.title}" has been untouched for {c.elapsed_text}. It is practically a museum exhibit now.'
        ),
        NagRule.NORMAL: lambda c: (
            f'You said "{c.title}" only takes {c.hour_phrase}? Maybe move something other than your mouth.'
        ),
    },
    NagStyle.FACT_PROFESSOR: {
        NagRule.CRITICAL: lambda c: (
            f'"{c.title}" is past its deadline. This is a critical deviation from plan. Immediate action is required.'
            if c.overdue
            else f'"{c.title}" is due in {c.due_text}. Given the estimate, not starting now makes the goal unreachable.'
        ),
        NagRule.PROCRASTINATING: lambda c: (
            f'"{c.title}" has remained incomplete for {c.elapsed_text} since creation. '
            "This is textbook evidence of habitual procrastination."
        ),
        NagRule.NORMAL: lambda c: (
            f'"{c.title}" is estimated at {c.hour_phrase}. Starting now minimizes schedule error. Trust the data.'
        ),
    },
    NagStyle.CUTE_BUT_BLUNT: {
        NagRule.CRITICAL: lambda c: (
            f'Eek! "{c.title}" is past its deadline! If you start now we can still fix the schedule, hurry!'
            if c.overdue
            else f'"{c.title}" is due in {c.due_text}! A little focus and you can totally make it. Let\'s go!'
        ),
        NagRule.PROCRASTINATING: lambda c: (
            f'"{c.title}" was made {c.elapsed_text} ago! Shall we start again? I believe in you!'
        ),
        NagRule.NORMAL: lambda c: (
            f'If you start "{c.title}" now, future you will be so much happier. Finish it and rest~'
        ),
    },
    NagStyle.TSUNDERE: {
        NagRule.CRITICAL: lambda c: (
            f'..."{c.title}" is overdue. Going to whine at the last minute again? Just get it done before that.'
            if c.overdue
            else f'Don\'t slack just because "{c.title}" has {c.due_text} left. I know how good you are at putting things off.'
        ),
        NagRule.PROCRASTINATING: lambda c: (
            f'"{c.title}" is {c.elapsed_text} old and still untouched? Honestly... just don\'t give up and start now.'
        ),
        NagRule.NORMAL: lambda c: (
            f'"{c.title}" is nothing. You know it won\'t even take {c.hour_phrase}, so why put it off? Just finish it.'
        ),
    },
}


_KO_TEMPLATES: Final[dict[NagStyle, dict[NagRule, _Template]]] = {
    NagStyle.DRILL_SERGEANT: {
        NagRule.CRITICAL: lambda c: (
            f'야 "{c.title}" 마감 지나고도 멀뚱멀뚱? {c.hours}시간도 못 뺄 정도면 그냥 다시 태어나.'
            if c.overdue
            else f'지금 "{c.title}" 마감까지 {c.due_text} 남았다고? {c.hours}시간이면 반도 못 한다. 당장 착수해.'
        ),
        NagRule.PROCRASTINATING: lambda c: (
            f'"{c.title}" 입력해둔 지 {c.elapsed_text} 지나도록 아무것도 안 했다니… '
            "진짜 대단하다. 기적이야. 이 기세로 계속 망할래?"
        ),
        NagRule.NORMAL: lambda c: (
            f'"{c.title}" 같은 건 {c.hours}시간이면 끝나. 쓸데없는 걱정 말고 키보드부터 두드려.'
        ),
    },
    NagStyle.SARCASTIC_FRIEND: {
        NagRule.CRITICAL: lambda c: (
            f'헐 "{c.title}" 마감 이미 지나버렸네? 괜찮아, 넌 늘 그랬으니까. 이번에도 기적 믿어볼래?'
            if c.overdue
            else f'"{c.title}" {c.due_text} 남았다고 여유 부리는 중? 역시 시간 관리의 신답다~'
        ),
        NagRule.PROCRASTINATING: lambda c: (
            f'"{c.title}" 넣어둔 지 {c.elapsed_text} 지났는데 아직도 그대로라니… 마치 박제해놓은 계획 같아.'
        ),
        NagRule.NORMAL: lambda c: (
            f'"{c.title}"는 {c.hours}시간이면 끝난다며? 말로만 그러지 말고, 몸도 좀 움직여 봐~'
        ),
    },
    NagStyle.FACT_PROFESSOR: {
        NagRule.CRITICAL: lambda c: (
            f'"{c.title}"는 이미 마감이 경과했다. 이는 계획 대비 치명적인 지연이다. 즉각적인 조치가 필요하다.'
            if c.overdue
            else f'"{c.title}" 마감까지 {c.due_text} 남았다. '
            "예상 소요 시간을 감안하면 지금 착수하지 않으면 목표 달성이 불가능하다."
        ),
        NagRule.PROCRASTINATING: lambda c: (
            f'"{c.title}"는 생성 후 {c.elapsed_text} 동안 미완료 상태다. 이는 습관적 미루기의 전형적 증거다.'
        ),
        NagRule.NORMAL: lambda c: (
            f'"{c.title}" 예상 소요 {c.hours}시간. 지금 시작하면 일정 오차를 최소화할 수 있다. 데이터를 믿어라.'
        ),
    },
    NagStyle.CUTE_BUT_BLUNT: {
        NagRule.CRITICAL: lambda c: (
            f'으앗! "{c.title}" 마감 지나버렸어! 그래도 지금 하면 일정 다시 잡을 수 있으니까 얼른 하자!'
            if c.overdue
            else f'"{c.title}" 마감까지 {c.due_text}! 조금만 집중하면 충분히 해낼 수 있어. 같이 힘내자!'
        ),
        NagRule.PROCRASTINATING: lambda c: (
            f'"{c.title}" 만든 지 {c.elapsed_text}이나 됐네? 슬슬 다시 시작해볼까? 난 네가 꼭 해낼 거라고 믿어!'
        ),
        NagRule.NORMAL: lambda c: (
            f'"{c.title}" 지금 시작하면 나중에 훨씬 편해질 거야. 얼른 해치우고 쉬자~'
        ),
    },
    NagStyle.TSUNDERE: {
        NagRule.CRITICAL: lambda c: (
            f'…"{c.title}" 마감 넘겼어. 너답게 또 막판에 우는 소리하려고? 그 전에 빨리 해버려.'
            if c.overdue
            else f'"{c.title}" {c.due_text} 남았다고 설렁설렁하지 마. 네가 얼마나 잘 미루는지 내가 알잖아.'
        ),
        NagRule.PROCRASTINATING: lambda c: (
            f'"{c.title}" 만든 지 {c.elapsed_text}이나 됐는데 아직도 그대로야? 참… 그래도 포기하지 말고 지금 시작해.'
        ),
        NagRule.NORMAL: lambda c: (
            f'"{c.title}" 정도는 금방이잖아. {c.hours}시간도 안 쓰는 거 뻔히 알면서 왜 미루니? 지금 조용히 끝내.'
        ),
    },
}

# Unknown locales fall back to English.
_TEMPLATES: Final[dict[str, dict[NagStyle, dict[NagRule, _Template]]]] = {
    "en": _EN_TEMPLATES,
    "ko": _KO_TEMPLATES,
}


def generate_nag_message(task: Task, style: NagStyle, now: datetime, locale: str = "en") -> str:
    payload = NagPayload.from_task(task, now)
    rule = determine_nag_rule(payload, now)
    ctx = TemplateContext(
        title=payload.title,
        due_text=format_duration((payload.due - now).total_seconds() * 1000.0, locale),
        elapsed_text=format_duration((now - payload.created_at).total_seconds() * 1000.0, locale),
        overdue=payload.due <= now,
        hours=_hours(payload.estimated_hours),
    )
    return _TEMPLATES.get(locale, _EN_TEMPLATES)[style][rule](ctx)
