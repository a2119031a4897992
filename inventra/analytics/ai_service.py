"""
Client for the Google Gemini generateContent REST endpoint.

The client has one operation, ``generate(prompt)``, which returns the model's
text or raises ``GenerativeServiceError``. Callers decide how to degrade.
"""
import os
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

FALLBACK_INSIGHTS = (
    "**Inventory Status**\n\n"
    "- Products in system\n"
    "- Orders being processed\n"
    "- Stock levels monitored\n\n"
    "**Try asking:**\n"
    '- "Which items are low on stock?"\n'
    '- "Show me top products"\n'
    "- \"What's my inventory value?\""
)

FALLBACK_REPORT = (
    "AI reporting is temporarily unavailable. Review low-stock products and "
    "recent orders on the dashboard in the meantime."
)

FALLBACK_PREDICTION = (
    "Demand prediction is temporarily unavailable. Use the reorder level as "
    "the restocking guide until predictions are back."
)


class GenerativeServiceError(Exception):
    """The generative text service could not produce a response"""


class GenerativeTextClient:
    def __init__(self, api_key=None, model=None, api_url=None, timeout=None, session=None):
        self.api_key = api_key if api_key is not None else getattr(
            settings, 'GEMINI_API_KEY', os.getenv('GEMINI_API_KEY', '')
        )
        self.model = model or getattr(settings, 'GEMINI_MODEL', 'gemini-2.5-flash')
        self.api_url = (api_url or getattr(
            settings, 'GEMINI_API_URL', 'https://generativelanguage.googleapis.com/v1beta'
        )).rstrip('/')
        self.timeout = timeout or getattr(settings, 'GEMINI_TIMEOUT', 30)
        self.session = session or requests.Session()

    @property
    def endpoint(self):
        return f"{self.api_url}/models/{self.model}:generateContent"

    def generate(self, prompt):
        """
        Send ``prompt`` and return the generated text with surrounding
        whitespace stripped.

        Raises:
            GenerativeServiceError: missing API key, transport or HTTP error,
                or a response without any text
        """
        if not self.api_key:
            raise GenerativeServiceError("GEMINI_API_KEY is not configured")

        try:
            response = self.session.post(
                self.endpoint,
                headers={'x-goog-api-key': self.api_key, 'Content-Type': 'application/json'},
                json={'contents': [{'parts': [{'text': prompt}]}]},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.Timeout as e:
            raise GenerativeServiceError(f"Request timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise GenerativeServiceError(f"Request failed: {e}") from e
        except ValueError as e:
            raise GenerativeServiceError("Response was not valid JSON") from e

        try:
            parts = payload['candidates'][0]['content']['parts']
            text = ''.join(part.get('text', '') for part in parts)
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            reason = payload.get('promptFeedback', {}).get('blockReason') if isinstance(payload, dict) else None
            raise GenerativeServiceError(f"Unexpected response shape (block reason: {reason})") from e

        text = text.strip()
        if not text:
            raise GenerativeServiceError("Response contained no text")
        logger.debug("Generated %d characters with %s", len(text), self.model)
        return text


def get_text_client():
    return GenerativeTextClient()
