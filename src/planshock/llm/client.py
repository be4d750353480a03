# src/planshock/llm/client.py

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any

import httpx
import openai
from openai import AsyncOpenAI

from ..alerts.messages import NagPayload
from ..core.persona import STYLE_PERSONAS, NagStyle, language_name, nag_system_prompt, summary_system_prompt
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

SUMMARY_TASK_LIMIT = 100


def _is_auth_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return True
    return exc.__class__.__name__ in {"UnauthorizedError"}


def _is_rate_limit_error(exc: Exception) -> bool:
    if isinstance(exc, openai.RateLimitError):
        return True
    return exc.__class__.__name__ in {"TooManyRequestsError"}


def _is_connection_error(exc: Exception) -> bool:
    if isinstance(exc, (openai.APIConnectionError, openai.APITimeoutError, httpx.TimeoutException)):
        return True
    return exc.__class__.__name__ in {"Timeout", "ConnectTimeout", "ReadTimeout", "WriteTimeout"}


def friendly_llm_error_message(err: Exception) -> str:
    """Short, user-facing text for an LLM failure (shown inline next to the task)."""
    msg = str(err).strip() or "LLM error."
    if _is_auth_error(err):
        return "LLM authentication failed. Check PLANSHOCK_OPENAI_API_KEY."
    if _is_rate_limit_error(err):
        return "LLM is rate-limited. Try again later."
    if _is_connection_error(err):
        return "LLM network/timeout error. Try again later."
    if "API key is not set" in msg:
        return "LLM is not configured (missing API key). Set PLANSHOCK_OPENAI_API_KEY in .env."
    return msg


def build_nag_prompt(task: Task, style: NagStyle, now: datetime, locale: str) -> str:
    payload = NagPayload.from_task(task, now)
    hours_left = round((payload.due - now).total_seconds() / 3600)
    elapsed_hours = round((now - payload.created_at).total_seconds() / 3600)
    overdue = payload.due <= now
    status = "OVERDUE" if overdue else ("CRITICAL" if hours_left <= 24 else "NORMAL")
    persona = STYLE_PERSONAS.get(style, str(style))

    return (
        f"Task Title: {payload.title}\n"
        f"Estimated Hours Needed: {payload.estimated_hours:g}\n"
        f"Due Date: {payload.due.isoformat()}\n"
        f"Hours Remaining: {hours_left}\n"
        f"Hours Since Creation: {elapsed_hours}\n"
        f"Status: {status}\n"
        "\n"
        f"Write a single-sentence nagging remark in {language_name(locale)}. Style persona: {persona}\n"
        "The line must stay under 140 characters, include no emojis, "
        "and never repeat the task title verbatim more than once."
    )


def _summary_rows(tasks: list[Task]) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for t in tasks[:SUMMARY_TASK_LIMIT]:
        rows.append(
            {
                "name": t.display_name,
                "deadline": t.deadline.isoformat() if t.deadline else None,
                "estimatedHours": t.estimated_hours,
                "createdAt": t.created_at.isoformat(),
                "completedAt": t.completed_at.isoformat() if t.completed_at else None,
            }
        )
    return rows


def build_summary_prompt(tasks: list[Task], locale: str) -> str:
    data = json.dumps(_summary_rows(tasks), ensure_ascii=False)
    return (
        "You give the user productivity feedback. Below is the user's weekly activity log.\n"
        f"Summarize it in at most three sentences in {language_name(locale)}. "
        "Be provocative and stick to the facts.\n"
        f"Data:\n{data}"
    )


class OpenAINagClient:
    """
    OpenAI-compatible client for nag lines and weekly summaries.

    - No secrets required at import time; the constructor raises without a key.
    - SDK retries are disabled: a failed call surfaces immediately and the caller
      falls back to the template line.
    """

    def __init__(self, settings: Any) -> None:
        api_key = getattr(settings, "openai_api_key", None)
        base_url = getattr(settings, "openai_base_url", "") or ""

        if not api_key or not str(api_key).strip():
            raise RuntimeError("LLM API key is not set. Set PLANSHOCK_OPENAI_API_KEY in your .env.")

        self._model = str(getattr(settings, "llm_model", "gpt-4o-mini"))
        self._temperature = float(getattr(settings, "llm_temperature", 0.9))
        self._max_tokens = int(getattr(settings, "llm_max_tokens", 120))
        self._locale = str(getattr(settings, "locale", "en"))

        connect_s = float(getattr(settings, "llm_connect_timeout", 5.0))
        read_s = float(getattr(settings, "llm_read_timeout", 25.0))
        timeout = httpx.Timeout(connect=connect_s, read=read_s, write=10.0, pool=connect_s)

        self._client = AsyncOpenAI(
            api_key=str(api_key),
            base_url=base_url.strip() or None,
            timeout=timeout,
            max_retries=0,
        )

    async def _complete(self, *, system_prompt: str, user_prompt: str, temperature: float, max_tokens: int) -> str:
        resp = await self._client.chat.completions.create(
            model=self._model,
            temperature=temperature,
            max_tokens=max_tokens,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        )
        try:
            content = resp.choices[0].message.content
        except (AttributeError, IndexError):
            content = None
        text = (content or "").strip()
        if not text:
            raise RuntimeError(f"Model returned no content: {self._model}")
        return text

    async def generate(self, task: Task, style: NagStyle, now: datetime) -> str:
        logger.debug("LLM: nag line task=%s style=%s model=%s", task.id, style.value, self._model)
        return await self._complete(
            system_prompt=nag_system_prompt(self._locale),
            user_prompt=build_nag_prompt(task, style, now, self._locale),
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )

    async def summarize_week(self, tasks: list[Task], now: datetime) -> str:
        logger.debug("LLM: weekly summary over %d tasks", len(tasks))
        return await self._complete(
            system_prompt=summary_system_prompt(self._locale),
            user_prompt=build_summary_prompt(tasks, self._locale),
            temperature=0.7,
            max_tokens=150,
        )

    async def aclose(self) -> None:
        await self._client.close()
