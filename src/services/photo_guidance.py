"""Next-photo guidance for fields the scan could not read.

Advisory only: guidance never influences the verdict.  Instructions exist
in English and Dutch (the MusicScan app ships in both).
"""

from __future__ import annotations

from src.models.extraction import NormalizedFields
from src.models.result import PhotoGuidance

_INSTRUCTIONS: dict[str, dict[str, str]] = {
    "en": {
        "matrix": (
            "Photograph the mirror band of the CD (around the center hole) at a 30-45° "
            "angle, in macro mode, against a dark background. Rotate the disc until the "
            "light catches the etched text."
        ),
        "ifpi": (
            "Zoom in on the inner ring of the CD near the center hole. Use side lighting "
            "to make the small IFPI codes visible."
        ),
        "barcode": (
            "Photograph the back of the case with the barcode clearly in frame. Make sure "
            "the image is sharp and free of reflections."
        ),
        "catno": (
            "Look for the catalog number on the spine or back of the case (e.g. "
            "'CDPCSD 167') and photograph that area."
        ),
    },
    "nl": {
        "matrix": (
            "Fotografeer de spiegelband van de CD (rond het centergat) onder een hoek van "
            "30-45°, met macro, donkere achtergrond. Draai de CD om het licht te vangen op "
            "de gegraveerde tekst."
        ),
        "ifpi": (
            "Zoom in op de binnenste ring van de CD bij het centergat. Gebruik zijlicht om "
            "de kleine IFPI codes zichtbaar te maken."
        ),
        "barcode": (
            "Fotografeer de achterkant van de hoes met de barcode duidelijk in beeld. Zorg "
            "voor scherp beeld zonder reflecties."
        ),
        "catno": (
            "Zoek het catalogusnummer op de rug of achterkant van de hoes (bijv. "
            "'CDPCSD 167'). Fotografeer dit gebied."
        ),
    },
}

SUPPORTED_LANGUAGES = tuple(_INSTRUCTIONS)


def build_photo_guidance(fields: NormalizedFields, language: str = "en") -> list[PhotoGuidance]:
    """One instruction per missing field, in matrix, ifpi, barcode, catno order.

    Unknown languages fall back to English.
    """
    texts = _INSTRUCTIONS.get(language, _INSTRUCTIONS["en"])
    return [
        PhotoGuidance(field=field, instruction=texts[field]) for field in fields.missing_fields()
    ]
