from __future__ import annotations

import json
import logging
from typing import Any, Optional

from google import genai
from google.genai import types

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = "I'm sorry, but I'm not properly configured. Please contact the administrator."
UNAVAILABLE_MESSAGE = "I'm having trouble processing your request right now. Please try again later."

SYSTEM_PROMPT = """
You are a helpful rental property management assistant for landlords. Your name is PropertyBot.

CAPABILITIES:
- Help landlords manage properties, units, and tenants through interactive conversations
- Add new properties, units, and tenants by asking questions one at a time
- Display property, unit, and tenant information in a clear format
- Remember conversation context

PROPERTY MANAGEMENT RULES:
- Properties have: name, address, type, size
- Units have: auto-generated unit ID (like U7K2QB), floor, rent, availability
- Tenants have: auto-generated tenant ID (like T3M9ZC), name, contact, unit, move-in date, rent info

CONVERSATION GUIDELINES:
- Be concise and helpful
- Ask one question at a time when collecting information
- To add records, tell the user to say "add property", "add unit" or "add tenant"
- To browse records, tell the user to say "list properties", "list units" or "list tenants"
- Use "summary <unit or tenant ID>" to describe a single unit or tenant

Always maintain a helpful, professional tone and focus on property management tasks.
""".strip()

SUMMARY_PROMPT = (
    "You are a helpful assistant that writes concise, well-formatted summaries of rental property "
    "information for a chat message. Plain text only."
)

_SUMMARY_FIELDS = {
    "property": "Include name, address, type, and size.",
    "unit": "Include unit ID, floor, rent, and availability status.",
    "tenant": "Include tenant ID, name, contact info, unit, move-in date, and rent information.",
}


class ReplyGenerator:
    """Free-form replies from Gemini for messages no flow or command handled."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.5-flash",
        temperature: float = 0.7,
        max_output_tokens: int = 1024,
        client: Optional[genai.Client] = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self._client = client
        if self._client is None and api_key:
            self._client = genai.Client(api_key=api_key)

    @property
    def configured(self) -> bool:
        return self._client is not None

    def _generate(self, contents: list[types.Content], system_instruction: str, temperature: float) -> str:
        response = self._client.models.generate_content(
            model=self.model,
            contents=contents,
            config=types.GenerateContentConfig(
                system_instruction=system_instruction,
                temperature=temperature,
                max_output_tokens=self.max_output_tokens,
            ),
        )
        return (response.text or "").strip()

    def generate_reply(self, user_id: str, history: list[dict[str, str]], new_message: str) -> str:
        if not self.configured:
            logger.error("GEMINI_API_KEY is not configured")
            return NOT_CONFIGURED_MESSAGE

        contents = [
            types.Content(
                role="user" if msg.get("role") == "user" else "model",
                parts=[types.Part(text=str(msg.get("content") or ""))],
            )
            for msg in history
            if msg.get("content")
        ]
        contents.append(types.Content(role="user", parts=[types.Part(text=new_message)]))

        try:
            text = self._generate(contents, SYSTEM_PROMPT, self.temperature)
        except Exception:
            logger.exception("Error generating reply for %s", user_id)
            return UNAVAILABLE_MESSAGE
        return text or "I'm sorry, I couldn't process your request."

    def summarize_entity(self, entity_type: str, data: dict[str, Any]) -> str:
        if not self.configured:
            logger.error("GEMINI_API_KEY is not configured")
            return NOT_CONFIGURED_MESSAGE

        prompt = (
            f"Generate a concise summary of this {entity_type} information. "
            f"{_SUMMARY_FIELDS.get(entity_type, '')} "
            f"Here's the data: {json.dumps(data, ensure_ascii=False, default=str)}"
        )
        try:
            text = self._generate(
                [types.Content(role="user", parts=[types.Part(text=prompt)])],
                SUMMARY_PROMPT,
                0.5,
            )
        except Exception:
            logger.exception("Error generating %s summary", entity_type)
            return f"Failed to generate {entity_type} summary."
        return text or f"Failed to generate {entity_type} summary."
