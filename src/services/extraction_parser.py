"""Extraction prompt and response parser for the vision model.

The prompt asks for a flat JSON object describing only the text that is
physically visible on the CD photos.  Models often wrap that object in
prose or a markdown fence, so the parser takes the outermost ``{...}``
span of the reply and validates it against :class:`ParsedExtraction`.

Parsing never raises.  It returns a tagged result, either
:class:`ParseOk` or :class:`ParseFailure`, and the caller decides what a
failure means.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Union

from pydantic import ValidationError

from src.models.extraction import ParsedExtraction

EXTRACTION_PROMPT = """\
You are a CD identification specialist. Analyze these photos of a CD (front cover, \
back cover, disc, etc.) and extract ONLY text you can physically see printed on the item.

CRITICAL RULES:
1. NEVER guess or use your music knowledge. Only report what is PHYSICALLY VISIBLE.
2. Barcodes are ALWAYS near the barcode symbol on the back cover - they are 8-13 digit numbers.
3. Catalog numbers are alphanumeric codes like "CDPCSD 167", "CDP 7 46203 2". \
"7243 8 36088 2 5" is NOT a catalog number if it's 13 digits - that's a barcode.
4. Matrix/mastering codes are etched/stamped on the disc hub (mirror band near center hole). \
They often contain plant codes like "DADC", "EMI UDEN", "PMDC", separators like "@@", hyphens, etc.
5. If text is NOT clearly visible, report it as null. NEVER invent data.
6. Year: ONLY from explicit copyright lines "(P) 1995" or "(C) 1995". Never guess year.
7. Country: ONLY from explicit text like "Printed in Holland", "Made in Germany", etc.
8. IFPI codes: Look for "IFPI Lxxx" (master) and "IFPI xxxx" (mould) on the disc.

A barcode like "7243 8 36088 2 9" with spaces is still a barcode (EAN), NOT a catalog number.
A catalog number looks like "CDPCSD 167", "7243-4-94077-2-8" with specific label prefixes.

Return JSON (no markdown):
{
  "artist": "artist name from front cover or null",
  "title": "album title from front cover or null",
  "barcode_raw": "exact barcode digits as printed near barcode symbol, or null",
  "barcode_source": "back_cover or null",
  "catno_raw": "exact catalog number as printed, or null",
  "catno_source": "back_cover/spine/front or null",
  "matrix_raw": "exact matrix/mastering code from disc hub, or null",
  "matrix_source": "disc_hub or null",
  "ifpi_master_raw": "IFPI master code (usually IFPI Lxxx) or null",
  "ifpi_mould_raw": "IFPI mould code (usually IFPI xxxx) or null",
  "label_raw": "record label name or null",
  "country_raw": "country of manufacture text or null",
  "year_hint_raw": "year from copyright line only, or null",
  "year_hint_source": "copyright line text or null",
  "notes": "what you see on the images, any uncertainties"
}"""

# First "{" through the last "}" of the reply.
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

_EXCERPT_CHARS = 200


@dataclass(frozen=True)
class ParseOk:
    value: ParsedExtraction


@dataclass(frozen=True)
class ParseFailure:
    reason: str
    # First characters of the model reply, for the audit trail.
    excerpt: str


ParseResult = Union[ParseOk, ParseFailure]  # noqa: UP007


def parse_extraction_response(content: str) -> ParseResult:
    """Parse a vision-model reply into a :class:`ParsedExtraction`.

    Parameters
    ----------
    content:
        The raw text content of the model's reply.

    Returns
    -------
    ParseResult
        ``ParseOk`` with the validated object, or ``ParseFailure`` when no
        JSON object is present, the JSON is malformed, the top-level value
        is not an object, or a known key has the wrong type.
    """
    excerpt = (content or "")[:_EXCERPT_CHARS]
    match = _JSON_OBJECT_RE.search(content or "")
    if match is None:
        return ParseFailure(reason="no JSON object in response", excerpt=excerpt)

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        return ParseFailure(reason=f"invalid JSON: {exc.msg}", excerpt=excerpt)

    if not isinstance(data, dict):
        return ParseFailure(reason="top-level JSON value is not an object", excerpt=excerpt)

    try:
        return ParseOk(value=ParsedExtraction.model_validate(data))
    except ValidationError as exc:
        fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err["loc"])
        return ParseFailure(reason=f"unexpected value types for: {fields}", excerpt=excerpt)
