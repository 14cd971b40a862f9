"""Extract structured event data from sanitized page text using an OpenAI-compatible LLM."""

import asyncio
import json
import re
import sys
from typing import Any, Optional, Protocol

import httpx

from clubevents.config import settings

RESPONSE_SNIPPET_CHARS = 200

# ---------------------------------------------------------------------------
# LLM client
# ---------------------------------------------------------------------------


class TextGenerator(Protocol):
    async def complete(self, messages: list[dict[str, str]]) -> str: ...


class LLMClient:
    """Chat-completions client. The returned text is untrusted."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.llm_base_url).rstrip("/")
        self.model = model or settings.llm_model
        self.api_key = settings.llm_api_key if api_key is None else api_key
        self.temperature = settings.llm_temperature if temperature is None else temperature
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def complete(self, messages: list[dict[str, str]]) -> str:
        """Send a chat completion request and return the raw text response."""
        url = f"{self.base_url}/chat/completions"
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }

        prompt_chars = sum(len(m.get("content", "")) for m in messages)
        print(f"  Sending to {self.model} ({prompt_chars} chars prompt)...")

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(connect=30, read=120, write=30, pool=30),
            transport=self.transport,
        ) as client:
            resp = await client.post(url, json=payload, headers=self._headers())
            if resp.status_code != 200:
                print(f"  LLM API error {resp.status_code}: {resp.text[:RESPONSE_SNIPPET_CHARS]}")
                resp.raise_for_status()
            data = resp.json()

        choices = data.get("choices") or []
        if not choices:
            return ""
        raw_content = (choices[0].get("message") or {}).get("content") or ""

        # Strip reasoning-model thinking tags if present
        if "<think>" in raw_content:
            raw_content = raw_content.split("</think>")[-1]

        raw_content = raw_content.strip()
        print(f"  LLM response: {len(raw_content)} chars")
        return raw_content


# ---------------------------------------------------------------------------
# Prompt builder
# ---------------------------------------------------------------------------


def build_extraction_prompt(
    url: str,
    content: str,
    image_urls: list[str],
    default_image: str,
) -> str:
    """Build the user prompt asking for a bare JSON array of events."""
    image_list = "\n".join(f"{i}. {img}" for i, img in enumerate(image_urls, 1))

    return f"""
You are an event extraction assistant. Extract events from the following website content.

Here are the image URLs found on the page:
{image_list}


IMPORTANT: For each event, only use an image from the list above if it is clearly associated with that specific event (e.g., is referenced in the event description, or is presented with the event).
If there is no clearly associated image, use this default club image: "{default_image}".

IMPORTANT: You must respond with ONLY a valid JSON array. Do not include any explanations, markdown formatting, or other text.
IMPORTANT: Use the full, exact event title as it appears in the website content. Do not shorten or paraphrase event names.
IMPORTANT: Use the full, exact event date as it appears in the website content associated with the event. If only a day and month are provided, assume the event is in the current year.
IMPORTANT: If an event is represented as a hyperlink, use the anchor text as the event title if it appears to be an event name.

Extract events that have dates and return them as a JSON array with this exact structure.
[
  {{
    "title": "Event Name",
    "startDate": "2025-01-17",
    "description": "Brief description",
    "eventURL": "{url}",
    "image": "Direct URL to the most relevant image from the list above associated with the event, or the default club image {default_image} if none."
  }}
]

If no events are found, return an empty array: []

Website content:
{content}
"""


# ---------------------------------------------------------------------------
# Response repair
# ---------------------------------------------------------------------------

_CODE_FENCE_RE = re.compile(r"```(?:json|javascript|js)?\s*\n?([\s\S]*?)\n?```")
_LEADING_NOISE_RE = re.compile(r"^[^\[{]*")
_TRAILING_NOISE_RE = re.compile(r"[^}\]]*$")


def _strip_code_fence(text: str) -> str:
    """Return the body of the first fenced code block, or the text itself."""
    match = _CODE_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def _trim_to_json_bounds(text: str) -> str:
    """Drop prose before the first ``[``/``{`` and after the last ``]``/``}``."""
    text = _LEADING_NOISE_RE.sub("", text, count=1)
    text = _TRAILING_NOISE_RE.sub("", text, count=1)
    return text.strip()


def parse_event_response(raw: str) -> list[dict[str, Any]]:
    """
    Turn raw LLM output into a list of candidate event dicts.

    Repair ladder: code-fence strip, boundary trim, shape check, JSON parse.
    Every failure degrades to an empty list. Entries without a ``title`` or
    ``startDate`` are dropped.
    """
    raw = raw or ""
    text = _trim_to_json_bounds(_strip_code_fence(raw))

    if not text.startswith("[") and not text.startswith("{"):
        print(f"  Invalid JSON format, skipping. Response: {raw[:RESPONSE_SNIPPET_CHARS]}...")
        return []

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        print(f"  JSON parsing error ({e}). Response: {raw[:RESPONSE_SNIPPET_CHARS]}...")
        return []

    if isinstance(parsed, dict):
        parsed = [parsed]
    if not isinstance(parsed, list):
        print(f"  Expected a JSON array, got: {type(parsed).__name__}")
        return []

    return [
        item
        for item in parsed
        if isinstance(item, dict) and item.get("title") and item.get("startDate")
    ]


# ---------------------------------------------------------------------------
# Public extraction function
# ---------------------------------------------------------------------------


async def extract_events(
    url: str,
    content: str,
    image_urls: list[str],
    default_image: str,
    club_id: str,
    generator: TextGenerator,
) -> list[dict[str, Any]]:
    """
    Ask the LLM for the events on one page and validate its answer.

    Args:
        url: Source page URL, the fallback ``eventURL``.
        content: Sanitized page text.
        image_urls: Candidate images found on the page.
        default_image: Club banner, suggested when no image fits an event.
        club_id: Attached to every returned event.
        generator: Text-generation client.

    Returns:
        Raw event dicts carrying ``clubID`` and ``eventURL``; not yet normalized.
    """
    prompt = build_extraction_prompt(url, content, image_urls, default_image)
    raw = await generator.complete([{"role": "user", "content": prompt}])

    events = []
    for item in parse_event_response(raw):
        item = dict(item)
        item["clubID"] = club_id
        if not item.get("eventURL"):
            item["eventURL"] = url
        events.append(item)

    print(f"  Extracted {len(events)} events from {url}")
    return events


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


async def main() -> None:
    """CLI: extract events from a saved HTML page."""
    if len(sys.argv) < 3:
        print("Usage: python -m clubevents.extractor <html_file> <page_url> [default_image]")
        print('Example: python -m clubevents.extractor page.html "https://club.example.com/events"')
        sys.exit(1)

    from pathlib import Path

    from clubevents.sanitizer import clean_html
    from clubevents.scraper import collect_image_urls

    html_file = Path(sys.argv[1])
    page_url = sys.argv[2]
    default_image = sys.argv[3] if len(sys.argv) > 3 else ""

    if not html_file.exists():
        print(f"File not found: {html_file}")
        sys.exit(1)

    html = html_file.read_text(encoding="utf-8")
    events = await extract_events(
        page_url,
        clean_html(html),
        collect_image_urls(html, page_url),
        default_image,
        club_id="test",
        generator=LLMClient(),
    )

    print(f"\n{'=' * 60}")
    print(f"EXTRACTED {len(events)} EVENTS")
    print(f"{'=' * 60}")
    for e in events:
        print(f"  {e.get('startDate')} | {e.get('title')}")
        if e.get("image"):
            print(f"           Image: {e['image']}")
        print()


if __name__ == "__main__":
    asyncio.run(main())
