"""Reglas ordenadas para resolver nombres de partido a claves canónicas.

Ordered rules resolving free-text party names to canonical keys.

El orden es parte del contrato: la primera regla que coincide gana. UML va
antes que NCP porque el nombre completo del UML contiene "communist" /
"कम्युनिष्ट". Cualquier texto sin coincidencia cae en ``Others``.

English:
    Order is part of the contract: the first matching rule wins. UML is
    tested before NCP because the UML's full name contains "communist" /
    "कम्युनिष्ट". Text matching no rule falls into ``Others``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from nirvachan.core.keys import (
    CONGRESS,
    JANAMAT,
    NCP,
    OTHERS,
    PSP_N,
    RPP,
    RSP,
    UML,
    UNP,
)


@dataclass(frozen=True)
class PartyRule:
    """Regla de partido con literales nativos e ingleses.

    English: Party rule with native-script literals and English substrings.
    """

    key: str
    native: Tuple[str, ...]
    english: Tuple[str, ...]

    def matches(self, cleaned: str, lowered: str) -> bool:
        """``cleaned`` is the repaired text, ``lowered`` its lower-case form."""
        return any(literal in cleaned for literal in self.native) or any(
            fragment in lowered for fragment in self.english
        )


PARTY_RULES: Tuple[PartyRule, ...] = (
    PartyRule(
        key=CONGRESS,
        native=("नेपाली कांग्रेस", "नेपाली काँग्रेस"),
        english=("nepali congress",),
    ),
    PartyRule(
        key=UML,
        native=("एमाले", "एकीकृत मार्क्सवादी लेनिनवादी"),
        english=("uml", "unified marxist"),
    ),
    # Colapso deliberado del linaje comunista/maoísta / Deliberate communist-lineage collapse.
    PartyRule(
        key=NCP,
        native=("माओवादी", "कम्युनिष्ट"),
        english=("mao", "communist"),
    ),
    PartyRule(
        key=RSP,
        native=("राष्ट्रिय स्वतन्त्र",),
        english=("rastriya swatantra",),
    ),
    PartyRule(
        key=RPP,
        native=("राष्ट्रिय प्रजातन्त्र",),
        english=("rastriya prajatantra",),
    ),
    PartyRule(
        key=PSP_N,
        native=("जनता समाजवादी",),
        english=("people's socialist", "people’s socialist", "peoples socialist"),
    ),
    PartyRule(
        key=JANAMAT,
        native=("जनमत",),
        english=("janamat",),
    ),
    PartyRule(
        key=UNP,
        native=("उज्यालो",),
        english=("ujyaalo", "ujyalo"),
    ),
)


def match_party(cleaned: str) -> str:
    """Aplica las reglas en orden sobre texto ya limpio.

    English: Apply the rules in order to already-cleaned text.
    """
    lowered = cleaned.lower()
    for party_rule in PARTY_RULES:
        if party_rule.matches(cleaned, lowered):
            return party_rule.key
    return OTHERS
