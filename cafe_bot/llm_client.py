import logging
from dataclasses import dataclass, field
from typing import Dict, List, Protocol

import instructor
from openai import AsyncOpenAI

from . import config
from .tasks.models import CatalogItem
from .tasks.schemas.parser_responses import ClassifierResponse

logger = logging.getLogger(__name__)

# Log configuration at DEBUG level (no sensitive data in INFO or higher)
logger.debug("OpenAI API key configured: %s", "Yes" if config.OPENAI_API_KEY else "No")
logger.debug("Using models: generation=%s classification=%s", config.OPENAI_MODEL, config.CLASSIFIER_MODEL)


SYSTEM_PROMPT_GENERATION = """
You are the friendly ordering assistant of a small Filipino café.

You ALWAYS have access to the full menu in the CATALOG section.
Never invent items, sizes or prices that are not in the CATALOG.

Behavior rules:
- Keep answers short: two or three sentences.
- Reply in the same language the customer uses (English or Tagalog/Taglish).
- When recommending, name one or two specific items from the CATALOG exactly as written.
- When asked what goes with an item, suggest drinks or sides from the CATALOG by name.
- Prices are in Philippine pesos (₱).
- If asked about something not on the menu, say it isn't available and suggest a similar item.
- Never claim an item was added to the order; the ordering system does that.
""".strip()


SYSTEM_PROMPT_CLASSIFICATION = """
You decide whether a café customer's message is placing an order.

Use the CATALOG to recognize item names. Questions, greetings, recommendations
requests and price questions are NOT orders.

Respond with ONLY a JSON object:
{
  "hasOrderIntent": true | false,
  "confidence": "high" | "medium" | "low",
  "items": [
    {"name": "<item as on the menu>", "quantity": <int>, "size": "<size>" | null, "confidence": "high" | "medium" | "low"}
  ]
}

Rules:
- "items" is empty when hasOrderIntent is false.
- Use null for size when the customer did not say one.
- quantity defaults to 1.
""".strip()


@dataclass
class CompletionRequest:
    """Everything the completion endpoint needs for one call."""
    system_prompt: str
    utterance: str
    context: str = ""
    history: List[Dict[str, str]] = field(default_factory=list)


class CompletionEndpoint(Protocol):
    """An LLM that can answer free text and classify order intent."""

    async def generate(self, request: CompletionRequest) -> str:
        ...

    async def classify(self, request: CompletionRequest) -> str:
        ...


def build_catalog_context(catalog: List[CatalogItem]) -> str:
    """Render the catalog as compact prompt text, one item per line."""
    lines = ["CATALOG:"]
    for item in catalog:
        if not item.available:
            continue
        prices = ", ".join(f"{label} ₱{price:g}" for label, price in item.pricing.items())
        category = f" [{item.category}]" if item.category else ""
        lines.append(f"- {item.name}{category}: {prices}")
    return "\n".join(lines)


def build_messages(request: CompletionRequest, turns: int | None = None) -> List[Dict[str, str]]:
    """
    Build the chat messages array for a request.

    System instructions and catalog context go in the system message, the
    last few turns follow as proper message objects, then the utterance.
    """
    system_content = request.system_prompt
    if request.context:
        system_content = f"{system_content}\n\n{request.context}"

    messages = [{"role": "system", "content": system_content}]

    turns = config.HISTORY_TURNS if turns is None else turns
    for msg in request.history[-turns:] if turns > 0 else []:
        messages.append({"role": msg["role"], "content": msg["content"]})

    messages.append({"role": "user", "content": request.utterance})
    return messages


class OpenAICompletionEndpoint:
    """
    CompletionEndpoint backed by the OpenAI async client.

    Classification goes through instructor so the model's answer is
    validated against ClassifierResponse before it is handed back as JSON.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        classifier_model: str | None = None,
        client: AsyncOpenAI | None = None,
    ):
        if client is None:
            api_key = api_key or config.OPENAI_API_KEY
            if not api_key:
                # Fail fast with a clear error if the key is missing
                raise RuntimeError(
                    f"OPENAI_API_KEY not found in {config.BASE_DIR / '.env'} or the environment. "
                    "Set it, or run without an endpoint to use deterministic parsing."
                )
            client = AsyncOpenAI(api_key=api_key)

        self._client = client
        self._instructor = instructor.from_openai(client)
        self.model = model or config.OPENAI_MODEL
        self.classifier_model = classifier_model or config.CLASSIFIER_MODEL

    async def generate(self, request: CompletionRequest) -> str:
        completion = await self._client.chat.completions.create(
            model=self.model,
            messages=build_messages(request),
            temperature=config.GENERATION_TEMPERATURE,
            max_tokens=config.GENERATION_MAX_TOKENS,
        )
        content = completion.choices[0].message.content
        return (content or "").strip()

    async def classify(self, request: CompletionRequest) -> str:
        result = await self._instructor.chat.completions.create(
            model=self.classifier_model,
            response_model=ClassifierResponse,
            messages=build_messages(request),
            temperature=config.CLASSIFIER_TEMPERATURE,
            max_tokens=config.CLASSIFIER_MAX_TOKENS,
            max_retries=2,
        )
        return result.model_dump_json(by_alias=True)
