"""
Generative flavour content: announcer commentary, avatars, winner toast.

All of it is advisory. Callers fire these requests in the background and
apply whatever comes back; a failure yields an empty string / None and is
only logged.
"""
from __future__ import annotations
import abc
import logging
import random
from typing import Any, Dict, Optional

import httpx

from taraq.config import settings

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

ANNOUNCER_PERSONA = "You are a cynical game show host. Keep it under 30 words."

AVATAR_TROPES = [
    "running late with toast in mouth",
    "wearing oversized dramatic sunglasses",
    "with intense magical girl sparkles",
    "looking shockingly confused",
    "wearing a cute cat onesie",
    "with a tiny dragon on their head",
    "channeling intense shonen protagonist energy",
    "sleeping while standing up",
    "holding a giant spoon menacingly",
    "surrounded by floating math equations",
    "wearing a cardboard box helmet",
    "winking aggressively",
    "drinking boba tea with determination",
    "crying anime tears of joy",
    "surrounded by gloomy depression lines",
    "with a futuristic sci-fi visor",
]


def commentary_prompt(
    actor: str,
    target: str,
    action: str,
    amount: int,
    remaining_hearts: int,
    is_self: bool,
    is_death: bool,
) -> str:
    whom = "to/from themselves" if is_self else f'to/from "{target}"'
    prompt = (
        'You are a witty, slightly dark, and sarcastic announcer for a game called "Taraq".\n'
        "In this game, players roll dice to add or remove hearts. If you reach -5 hearts, you die.\n\n"
        "The Move:\n"
        f'- Player "{actor}" rolled a {amount}.\n'
        f"- They decided to {action} {amount} hearts {whom}.\n"
        f'- "{target}" now has {remaining_hearts} hearts.\n'
    )
    if is_death:
        prompt += (
            f'\nCRITICAL: "{target}" has died (reached -5 or lower)! '
            "Make a funny eulogy or roast them for losing."
        )
    else:
        prompt += "\nMake a short, punchy, one-sentence comment on this strategic choice. Be sarcastic."
    return prompt


class CommentaryService(abc.ABC):
    """Interface of the external generative-content service."""

    @abc.abstractmethod
    async def generate_commentary(
        self,
        actor: str,
        target: str,
        action: str,
        amount: int,
        remaining_hearts: int,
        is_self: bool,
        is_death: bool,
    ) -> str:
        ...

    @abc.abstractmethod
    async def generate_avatar(self, name: str) -> Optional[str]:
        ...

    @abc.abstractmethod
    async def generate_winner_toast(self, winner_name: str, rounds: int) -> str:
        ...


class NullCommentaryService(CommentaryService):
    """Used when no API key is configured: the game simply has no flavour."""

    async def generate_commentary(self, actor, target, action, amount,
                                  remaining_hearts, is_self, is_death) -> str:
        return ""

    async def generate_avatar(self, name: str) -> Optional[str]:
        return None

    async def generate_winner_toast(self, winner_name: str, rounds: int) -> str:
        return ""


class GeminiCommentaryService(CommentaryService):
    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        avatar_model: str = "gemini-2.5-flash-image",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not api_key:
            raise ValueError("Gemini API key is missing")
        self.api_key = api_key
        self.model = model
        self.avatar_model = avatar_model
        self.timeout = timeout
        self._transport = transport

    async def _generate(self, model: str, body: Dict[str, Any]) -> Dict[str, Any]:
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(GEMINI_URL.format(model=model), headers=headers, json=body)
            response.raise_for_status()
            return response.json()

    @staticmethod
    def _parts(data: Dict[str, Any]) -> list:
        candidates = data.get("candidates") or [{}]
        return (candidates[0].get("content") or {}).get("parts") or []

    def _text(self, data: Dict[str, Any]) -> str:
        return "".join(p.get("text", "") for p in self._parts(data)).strip()

    async def generate_commentary(self, actor, target, action, amount,
                                  remaining_hearts, is_self, is_death) -> str:
        body = {
            "contents": [{"parts": [{"text": commentary_prompt(
                actor, target, action, amount, remaining_hearts, is_self, is_death,
            )}]}],
            "systemInstruction": {"parts": [{"text": ANNOUNCER_PERSONA}]},
            "generationConfig": {"thinkingConfig": {"thinkingBudget": 0}},
        }
        try:
            data = await self._generate(self.model, body)
        except httpx.HTTPStatusError as e:
            logger.warning(f"Commentary request failed: {e.response.status_code} - {e.response.text}")
            return ""
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Commentary request failed: {e}")
            return ""
        return self._text(data) or "The fates remain silent..."

    async def generate_avatar(self, name: str) -> Optional[str]:
        trope = random.choice(AVATAR_TROPES)
        prompt = (
            f'Generate a funny, colorful, chibi-style anime avatar for a character named "{name}". '
            f"The character is {trope}. "
            "Art style: Thick outlines, vibrant colors, exaggerated facial expression. "
            "Solid color background."
        )
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"imageConfig": {"aspectRatio": "1:1"}},
        }
        try:
            data = await self._generate(self.avatar_model, body)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Avatar generation failed for {name!r}: {e}")
            return None
        for part in self._parts(data):
            inline = part.get("inlineData")
            if inline and inline.get("data"):
                mime = inline.get("mimeType", "image/png")
                return f"data:{mime};base64,{inline['data']}"
        return None

    async def generate_winner_toast(self, winner_name: str, rounds: int) -> str:
        body = {
            "contents": [{"parts": [{"text": (
                f'Player "{winner_name}" won the game Taraq after {rounds} turns! '
                "Congratulate them as the supreme survivor in a slightly ominous way. Max 1 sentence."
            )}]}],
        }
        try:
            data = await self._generate(self.model, body)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Winner toast failed: {e}")
            return f"All hail {winner_name}!"
        return self._text(data) or f"All hail {winner_name}, the last survivor!"


def create_commentary_service() -> CommentaryService:
    """Pick the service implementation from settings."""
    if settings.gemini_api_key:
        return GeminiCommentaryService(
            api_key=settings.gemini_api_key,
            model=settings.commentary_model,
            avatar_model=settings.avatar_model,
            timeout=settings.commentary_timeout,
        )
    return NullCommentaryService()
