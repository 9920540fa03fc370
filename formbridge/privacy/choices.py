"""Adapting literals to the option lists of choice fields."""
from typing import Optional, Sequence

# Spellings Dutch forms use for common nationalities.
NATIONALITY_VARIANTS: dict[str, list[str]] = {
    "Egyptian": ["Egyptische", "Egypte", "Egypt", "EG"],
    "Turkish": ["Turkse", "Turkije", "Turkey", "TR"],
    "Moroccan": ["Marokkaanse", "Marokko", "Morocco", "MA"],
    "Syrian": ["Syrische", "Syrië", "Syria", "SY"],
    "Polish": ["Poolse", "Polen", "Poland", "PL"],
    "Ukrainian": ["Oekraïense", "Oekraïne", "Ukraine", "UA"],
    "German": ["Duitse", "Duitsland", "Germany", "DE"],
    "Dutch": ["Nederlandse", "Nederland", "Netherlands", "NL"],
}


def match_choice_option(
    literal: str, options: Sequence[tuple[str, str]]
) -> Optional[str]:
    """Find the option value a literal corresponds to.

    Args:
        literal: The substituted personal-data value.
        options: Ordered (value, text) pairs of the captured select.

    Returns:
        The matching option value, or None when nothing fits.
    """
    lowered = literal.strip().lower()
    for value, text in options:
        if value.lower() == lowered or text.strip().lower() == lowered:
            return value

    variants = NATIONALITY_VARIANTS.get(literal.strip(), [literal.strip()])
    for variant in variants:
        needle = variant.lower()
        if not needle:
            continue
        for value, text in options:
            hay = text.strip().lower()
            # Empty option text would otherwise match everything.
            if not hay:
                continue
            if needle in hay or hay in needle:
                return value
    return None
