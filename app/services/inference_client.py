"""
Inference API Client

The AI service is reached through the OpenAI-compatible chat completions API,
so we use the openai library. The default endpoint is Gemini's
OpenAI-compatible one; any compatible provider works through settings.

CONTRACT WITH THE PIPELINE:
- analyze_batch: N student records in -> N PlacementInfo out, same order
- generate_report: prompt in -> markdown text out
- Every failure is raised as one of the app.core.exceptions classes,
  so callers only decide between rotate / sentinel / abort
- The SDK's own retries are disabled; credential rotation is the retry policy
"""
import json
import logging
import threading
from typing import Dict, List, Sequence

import openai
from openai import OpenAI
from pydantic import ValidationError

from app.core.config import get_settings
from app.core.exceptions import (
    CredentialInvalid,
    CredentialMissing,
    InferenceFailure,
    PlacementError,
    RateLimited,
    SchemaMismatch,
    TransportFailure,
)
from app.schemas.schemas import PlacementInfo, StudentRecord

logger = logging.getLogger(__name__)

_INVALID_KEY_MARKERS = ("api key not valid", "api_key_invalid", "invalid api key", "incorrect api key")
_RATE_LIMIT_MARKERS = ("rate limit", "quota", "resource_exhausted", "too many requests")


BATCH_SYSTEM_PROMPT = """You analyze student profiles and identify each student's first full-time post-graduation job.

IMPORTANT RULES:
1. IGNORE internships, freelance work, contract roles, or trainee positions. Focus ONLY on the first permanent, full-time role after their graduation date.
2. If no suitable full-time role is found, set placedRole and placedCompany to 'Not Placed' and estimatedSalary to 'N/A'.
3. Provide a realistic salary estimate in Lakhs Per Annum (LPA) for the identified role (e.g. '8-10 LPA').
4. Add a one-sentence salaryJustification and a salaryConfidence of 'High', 'Medium' or 'Low'.
5. Return ONLY valid JSON of the form:
{"placements": [{"placedRole": "string", "placedCompany": "string", "estimatedSalary": "string", "salaryJustification": "string", "salaryConfidence": "string"}]}
The placements array must have the same number of objects as the input array of students, in the same order."""

REPORT_SYSTEM_PROMPT = """You are a professional placement report analyst.
Write formal, insightful Markdown suitable for college management and prospective students."""


def classify_error(exc: Exception) -> PlacementError:
    """Map an openai SDK exception onto the pipeline's error taxonomy."""
    if isinstance(exc, PlacementError):
        return exc

    message = str(exc)
    lowered = message.lower()

    if isinstance(exc, openai.RateLimitError):
        return RateLimited(message)
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return CredentialInvalid(message)
    # APITimeoutError is a subclass of APIConnectionError
    if isinstance(exc, openai.APIConnectionError):
        return TransportFailure(message)
    if isinstance(exc, openai.APIStatusError):
        # Gemini answers a bad key with a plain 400
        if any(marker in lowered for marker in _INVALID_KEY_MARKERS):
            return CredentialInvalid(message)
        if exc.status_code == 429 or any(marker in lowered for marker in _RATE_LIMIT_MARKERS):
            return RateLimited(message)
        return InferenceFailure(message)
    return InferenceFailure(message)


class InferenceClient:
    """
    Wrapper around the OpenAI-compatible API.
    One SDK client is kept per credential.
    """

    def __init__(self, base_url: str = None, model: str = None):
        settings = get_settings()
        self.base_url = base_url or settings.ai_base_url
        self.model = model or settings.ai_model
        self.timeout = settings.ai_timeout_seconds
        self.max_tokens = settings.ai_max_tokens
        self.temperature = settings.ai_temperature
        self._clients: Dict[str, OpenAI] = {}
        self._lock = threading.Lock()

    def _client_for(self, credential: str) -> OpenAI:
        if not credential:
            raise CredentialMissing()
        with self._lock:
            client = self._clients.get(credential)
            if client is None:
                client = OpenAI(
                    api_key=credential,
                    base_url=self.base_url,
                    timeout=self.timeout,
                    max_retries=0
                )
                self._clients[credential] = client
            return client

    def _call_api(
        self,
        credential: str,
        system_prompt: str,
        user_content: str,
        json_mode: bool = False,
        max_tokens: int = None
    ) -> str:
        """
        Internal method to call the API.
        Returns raw text response (empty string when the model sent nothing).
        """
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = self._client_for(credential).chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content}
                ],
                max_tokens=max_tokens or self.max_tokens,
                temperature=self.temperature,
                **kwargs
            )
        except Exception as exc:
            raise classify_error(exc) from exc

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def _extract_json(self, text: str):
        """
        Extract JSON from API response.
        Handles cases where model wraps JSON in markdown code blocks.
        """
        text = text.strip()
        if text.startswith("```json"):
            text = text[7:]
        if text.startswith("```"):
            text = text[3:]
        if text.endswith("```"):
            text = text[:-3]

        return json.loads(text.strip())

    def analyze_batch(self, records: Sequence[StudentRecord], credential: str) -> List[PlacementInfo]:
        """
        Infer the first post-graduation job for every record in the batch.

        Raises:
            SchemaMismatch: empty, unparseable or wrong-length response
            CredentialInvalid / RateLimited: the credential should be rotated
            TransportFailure / InferenceFailure: anything else
        """
        payload = json.dumps([record.to_prompt_dict() for record in records], indent=2)
        response = self._call_api(
            credential,
            BATCH_SYSTEM_PROMPT,
            f"Student Data:\n{payload}",
            json_mode=True
        )

        if not response.strip():
            raise SchemaMismatch("AI response was empty.", reason="AI Response Error")

        try:
            data = self._extract_json(response)
        except json.JSONDecodeError as exc:
            raise SchemaMismatch(f"AI response is not valid JSON: {exc}") from exc

        if isinstance(data, dict):
            data = data.get("placements")
        if not isinstance(data, list) or len(data) != len(records):
            got = len(data) if isinstance(data, list) else type(data).__name__
            raise SchemaMismatch(f"AI response mismatch: expected {len(records)} placements, got {got}")

        try:
            return [PlacementInfo.model_validate(item) for item in data]
        except ValidationError as exc:
            raise SchemaMismatch(f"AI placement failed validation: {exc}") from exc

    def generate_report(self, prompt: str, credential: str) -> str:
        """Generate a markdown narrative report."""
        report = self._call_api(credential, REPORT_SYSTEM_PROMPT, prompt)
        if not report.strip():
            raise InferenceFailure(
                "Received an empty report from the AI service. "
                "This might be due to a network issue or content filter."
            )
        return report

    def test_connection(self, credential: str) -> bool:
        """Test if the API is reachable with this credential"""
        try:
            response = self._call_api(
                credential,
                "You are a test assistant.",
                "Reply with exactly: OK",
                max_tokens=10
            )
            return "OK" in response.upper()
        except PlacementError as e:
            logger.warning(f"Inference connection failed: {e}")
            return False


# Singleton instance
_inference_client: InferenceClient = None


def get_inference_client() -> InferenceClient:
    """Get or create the inference client (singleton pattern)"""
    global _inference_client
    if _inference_client is None:
        _inference_client = InferenceClient()
    return _inference_client
