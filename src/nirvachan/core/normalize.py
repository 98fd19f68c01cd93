"""
======================== ÍNDICE / INDEX ========================
1. Descripción general / Overview
2. Componentes principales / Main components
3. Notas de mantenimiento / Maintenance notes

======================== ESPAÑOL ========================
Archivo: `src/nirvachan/core/normalize.py`.
Normalizador de nombres: convierte texto crudo de cualquiera de las tres
fuentes (API oficial, tabla enciclopédica, archivo geográfico) en claves
canónicas. Todas las funciones son puras y totales sobre tablas inmutables.

Componentes detectados:
  - fix_mojibake / clean_text / unify_dashes
  - normalize_district
  - extract_district / constituency_number / split_constituency
  - normalize_party
  - normalize_province
  - district_from_feature

Notas:
- Agregar variantes nuevas a las tablas, nunca lógica ad hoc.

======================== ENGLISH ========================
File: `src/nirvachan/core/normalize.py`.
Name normalizer: turns raw text from any of the three sources (official API,
encyclopedia table, geographic boundary file) into canonical keys. Every
function is pure and total over immutable tables.

Notes:
- Add new spellings to the tables, never ad hoc logic.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Any, Mapping, Optional

from nirvachan.core.keys import (
    BAGMATI,
    GANDAKI,
    KARNALI,
    KOSHI,
    LUMBINI,
    MADHESH,
    SUDURPASHCHIM,
    ConstituencyKey,
)
from nirvachan.core.parties import match_party

ORDINAL_SENTINEL = 999

# Marcador de UTF-8 decodificado como Latin-1 / Marker of UTF-8 decoded as Latin-1.
_MOJIBAKE_MARKER = "à"

_WHITESPACE_RE = re.compile(r"\s+")
_DASHES_RE = re.compile("[‐‑‒–—―−]")
_ORDINAL_SUFFIX_RE = re.compile(r"[-\s]*\d+\s*$")
_TRAILING_NUMBER_RE = re.compile(r"(\d+)\s*$")

NATIVE_DISTRICTS: Mapping[str, str] = MappingProxyType(
    {
        # Koshi
        "ताप्लेजुंग": "Taplejung",
        "ताप्लेजुङ": "Taplejung",
        "पाँचथर": "Panchthar",
        "इलाम": "Ilam",
        "झापा": "Jhapa",
        "मोरङ": "Morang",
        "सुनसरी": "Sunsari",
        "धनकुटा": "Dhankuta",
        "तेह्रथुम": "Tehrathum",
        "तेर्हथुम": "Tehrathum",
        "संखुवासभा": "Sankhuwasabha",
        "सङ्खुवासभा": "Sankhuwasabha",
        "भोजपुर": "Bhojpur",
        "खोटाङ": "Khotang",
        "सोलुखुम्बु": "Solukhumbu",
        "ओखलढुंगा": "Okhaldhunga",
        "ओखलढुङ्गा": "Okhaldhunga",
        "उदयपुर": "Udayapur",
        # Madhesh
        "सप्तरी": "Saptari",
        "सिराहा": "Siraha",
        "सिरहा": "Siraha",
        "धनुषा": "Dhanusha",
        "महोत्तरी": "Mahottari",
        "सर्लाही": "Sarlahi",
        "रौतहट": "Rautahat",
        "बारा": "Bara",
        "पर्सा": "Parsa",
        # Bagmati
        "दोलखा": "Dolakha",
        "रामेछाप": "Ramechhap",
        "सिन्धुली": "Sindhuli",
        "सिन्धुपाल्चोक": "Sindhupalchok",
        "काभ्रेपलाञ्चोक": "Kavrepalanchok",
        "काभ्रेपलान्चोक": "Kavrepalanchok",
        "ललितपुर": "Lalitpur",
        "भक्तपुर": "Bhaktapur",
        "काठमाडौँ": "Kathmandu",
        "काठमाडौं": "Kathmandu",
        "नुवाकोट": "Nuwakot",
        "रसुवा": "Rasuwa",
        "धादिङ": "Dhading",
        "चितवन": "Chitwan",
        "मकवानपुर": "Makwanpur",
        # Gandaki
        "गोरखा": "Gorkha",
        "लमजुङ": "Lamjung",
        "तनहुँ": "Tanahun",
        "कास्की": "Kaski",
        "मनाङ": "Manang",
        "मुस्ताङ": "Mustang",
        "म्याग्दी": "Myagdi",
        "नवलपुर": "Nawalpur",
        "नवलपरासी पूर्व": "Nawalpur",
        "नवलपरासी (बर्दघाट सुस्ता पूर्व)": "Nawalpur",
        "पर्वत": "Parbat",
        "बागलुङ": "Baglung",
        "स्याङ्जा": "Syangja",
        "स्याङजा": "Syangja",
        # Lumbini
        "रुकुम पूर्व": "Eastern Rukum",
        "रुकुम (पूर्वी भाग)": "Eastern Rukum",
        "रोल्पा": "Rolpa",
        "प्युठान": "Pyuthan",
        "गुल्मी": "Gulmi",
        "अर्घाखाँची": "Arghakhanchi",
        "पाल्पा": "Palpa",
        "नवलपरासी पश्चिम": "Nawalparasi",
        "नवलपरासी (बर्दघाट सुस्ता पश्चिम)": "Nawalparasi",
        "रुपन्देही": "Rupandehi",
        "रूपन्देही": "Rupandehi",
        "कपिलवस्तु": "Kapilvastu",
        "कपिलबस्तु": "Kapilvastu",
        "दाङ": "Dang",
        "बाँके": "Banke",
        "बर्दिया": "Bardiya",
        # Karnali
        "रुकुम पश्चिम": "Western Rukum",
        "रुकुम (पश्चिम भाग)": "Western Rukum",
        "सल्यान": "Salyan",
        "डोल्पा": "Dolpa",
        "मुगु": "Mugu",
        "हुम्ला": "Humla",
        "जुम्ला": "Jumla",
        "कालिकोट": "Kalikot",
        "दैलेख": "Dailekh",
        "जाजरकोट": "Jajarkot",
        "सुर्खेत": "Surkhet",
        # Sudurpashchim
        "बाजुरा": "Bajura",
        "बझुरा": "Bajura",
        "बझाङ": "Bajhang",
        "अछाम": "Achham",
        "डोटी": "Doti",
        "कैलाली": "Kailali",
        "कञ्चनपुर": "Kanchanpur",
        "कंचनपुर": "Kanchanpur",
        "डडेल्धुरा": "Dadeldhura",
        "बैतडी": "Baitadi",
        "दार्चुला": "Darchula",
    }
)

# Correcciones curadas entre fuentes, claves en minúsculas.
# Curated cross-source overrides, keys lower-cased.
DISTRICT_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "rukum east": "Eastern Rukum",
        "rukum (east)": "Eastern Rukum",
        "rukum-east": "Eastern Rukum",
        "rukum east district": "Eastern Rukum",
        "east rukum": "Eastern Rukum",
        "rukum west": "Western Rukum",
        "rukum (west)": "Western Rukum",
        "rukum-west": "Western Rukum",
        "rukum west district": "Western Rukum",
        "west rukum": "Western Rukum",
        "nawalparasi east": "Nawalpur",
        "nawalparasi (east)": "Nawalpur",
        "nawalparasi west": "Nawalparasi",
        "nawalparasi (west)": "Nawalparasi",
        "parasi": "Nawalparasi",
        "chitawan": "Chitwan",
        "tanahu": "Tanahun",
        "kabhrepalanchok": "Kavrepalanchok",
        "kavre": "Kavrepalanchok",
        "sindhupalchowk": "Sindhupalchok",
        "makawanpur": "Makwanpur",
        "dhanusa": "Dhanusha",
        "terhathum": "Tehrathum",
        "kapilbastu": "Kapilvastu",
    }
)

_PROVINCE_HINTS = (
    ("koshi", KOSHI),
    ("madhesh", MADHESH),
    ("bagmati", BAGMATI),
    ("gandaki", GANDAKI),
    ("lumbini", LUMBINI),
    ("karnali", KARNALI),
    ("sudurpashchim", SUDURPASHCHIM),
    ("sudurpaschim", SUDURPASHCHIM),
)

FEATURE_NAME_KEYS = (
    "DIST_EN",
    "DIST_ALT1E",
    "DIST_ALT2E",
    "DISTRICT",
    "DISTRICT_EN",
    "DISTNAME",
    "DIST_NAME",
    "NAME_3",
    "NAME",
    "NAME_EN",
    "name",
)
_FEATURE_KEY_HINT_RE = re.compile(r"dist|district|name", re.IGNORECASE)


def fix_mojibake(text: str) -> str:
    """/** Repara texto UTF-8 leído como Latin-1. / Repair UTF-8 text read as Latin-1. **/"""
    if _MOJIBAKE_MARKER not in text:
        return text
    try:
        return text.encode("latin-1").decode("utf-8")
    except UnicodeError:
        return text


def clean_text(value: Any) -> str:
    """Stringify, repair and collapse whitespace. ``None`` becomes ``""``."""
    if value is None:
        return ""
    return _WHITESPACE_RE.sub(" ", fix_mojibake(str(value))).strip()


def unify_dashes(text: str) -> str:
    return _DASHES_RE.sub("-", text)


def normalize_district(raw: Any) -> str:
    """Normaliza un nombre de distrito de cualquier fuente.

    Pasos: reparar mojibake, colapsar espacios, unificar guiones, buscar en la
    tabla nativa, luego en los alias (sin distinguir mayúsculas). Si no hay
    coincidencia devuelve el texto limpio (distritos ya en inglés).

    English:
        Normalize a district name from any source. Steps: repair mojibake,
        collapse whitespace, unify dashes, look up the native-script table,
        then the alias overrides (case-insensitive). Unknown names come back
        as the cleaned text, which covers districts already given in English.
    """
    cleaned = unify_dashes(clean_text(raw)).strip()
    native = NATIVE_DISTRICTS.get(cleaned)
    if native is not None:
        return native
    return DISTRICT_ALIASES.get(cleaned.lower(), cleaned)


def extract_district(constituency_label: Any) -> str:
    """Quita el ordinal final de ``"<Distrito> <N>"``.

    English:
        Strip the trailing ordinal from ``"<District> <N>"`` (space or any
        dash glyph, arbitrary spacing). Idempotent: multi-word names such as
        ``"Eastern Rukum"`` are never cut.
    """
    text = unify_dashes(clean_text(constituency_label))
    stripped = _ORDINAL_SUFFIX_RE.sub("", text).strip()
    if stripped != text:
        return stripped
    tokens = text.split()
    if len(tokens) > 1 and tokens[-1].isdigit():
        return " ".join(tokens[:-1])
    return text


def _trailing_number(label: Any) -> Optional[int]:
    match = _TRAILING_NUMBER_RE.search(clean_text(label))
    return int(match.group(1)) if match else None


def constituency_number(label: Any) -> int:
    """Trailing ordinal of a constituency label, ``ORDINAL_SENTINEL`` when absent."""
    number = _trailing_number(label)
    return ORDINAL_SENTINEL if number is None else number


def split_constituency(label: Any) -> Optional[ConstituencyKey]:
    """/** Convierte ``"Jhapa 1"`` en ``ConstituencyKey("Jhapa", 1)``. / Parse a label into a key. **/"""
    ordinal = _trailing_number(label)
    if ordinal is None or ordinal < 1:
        return None
    district = normalize_district(extract_district(label))
    if not district:
        return None
    return ConstituencyKey(district, ordinal)


def normalize_party(raw: Any) -> str:
    """Resolve free-text party names (either script) to a party key. Total."""
    return match_party(clean_text(raw))


def normalize_province(raw: Any) -> str:
    """/** Canoniza encabezados de provincia. / Canonicalize province headings. **/"""
    text = re.sub(r"\[\d+\]", "", clean_text(raw)).strip()
    lowered = text.lower()
    if "province" in lowered:
        return text
    for hint, province in _PROVINCE_HINTS:
        if hint in lowered:
            return province
    return text


def district_from_feature(properties: Optional[Mapping[str, Any]]) -> str:
    """Obtiene el distrito de las propiedades de un polígono geográfico.

    English:
        Pick the district name from a boundary feature's attributes: known
        keys first, then any key that looks like a district/name field, then
        the first reasonable string. The result is normalized.
    """
    props = properties or {}
    for key in FEATURE_NAME_KEYS:
        value = props.get(key)
        if isinstance(value, str) and value.strip():
            return normalize_district(value)
    for key, value in props.items():
        if _FEATURE_KEY_HINT_RE.search(str(key)) and isinstance(value, str) and value.strip():
            return normalize_district(value)
    for value in props.values():
        if isinstance(value, str) and len(value.strip()) >= 2:
            return normalize_district(value)
    return "Unknown"
