# Keys Module
# AUTO-DOC-INDEX
#
# ES: Índice rápido
#   1) Distritos canónicos y provincias
#   2) Claves de partido
#   3) Claves de circunscripción y de voto
#
# EN: Quick index
#   1) Canonical districts and provinces
#   2) Party keys
#   3) Constituency and vote keys

"""Espacio de claves canónicas compartido por referencia y resultados en vivo.

English: Canonical keyspace shared by reference data and live results.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Literal, Mapping, NamedTuple, Tuple

KOSHI = "Koshi Province"
MADHESH = "Madhesh Province"
BAGMATI = "Bagmati Province"
GANDAKI = "Gandaki Province"
LUMBINI = "Lumbini Province"
KARNALI = "Karnali Province"
SUDURPASHCHIM = "Sudurpashchim Province"

PROVINCES: Tuple[str, ...] = (
    KOSHI,
    MADHESH,
    BAGMATI,
    GANDAKI,
    LUMBINI,
    KARNALI,
    SUDURPASHCHIM,
)

_DISTRICTS_BY_PROVINCE: Dict[str, Tuple[str, ...]] = {
    KOSHI: (
        "Taplejung",
        "Panchthar",
        "Ilam",
        "Jhapa",
        "Morang",
        "Sunsari",
        "Dhankuta",
        "Tehrathum",
        "Sankhuwasabha",
        "Bhojpur",
        "Khotang",
        "Solukhumbu",
        "Okhaldhunga",
        "Udayapur",
    ),
    MADHESH: (
        "Saptari",
        "Siraha",
        "Dhanusha",
        "Mahottari",
        "Sarlahi",
        "Rautahat",
        "Bara",
        "Parsa",
    ),
    BAGMATI: (
        "Dolakha",
        "Ramechhap",
        "Sindhuli",
        "Sindhupalchok",
        "Kavrepalanchok",
        "Lalitpur",
        "Bhaktapur",
        "Kathmandu",
        "Nuwakot",
        "Rasuwa",
        "Dhading",
        "Chitwan",
        "Makwanpur",
    ),
    GANDAKI: (
        "Gorkha",
        "Lamjung",
        "Tanahun",
        "Kaski",
        "Manang",
        "Mustang",
        "Myagdi",
        "Nawalpur",
        "Parbat",
        "Baglung",
        "Syangja",
    ),
    LUMBINI: (
        "Eastern Rukum",
        "Rolpa",
        "Pyuthan",
        "Gulmi",
        "Arghakhanchi",
        "Palpa",
        "Nawalparasi",
        "Rupandehi",
        "Kapilvastu",
        "Dang",
        "Banke",
        "Bardiya",
    ),
    KARNALI: (
        "Western Rukum",
        "Salyan",
        "Dolpa",
        "Mugu",
        "Humla",
        "Jumla",
        "Kalikot",
        "Dailekh",
        "Jajarkot",
        "Surkhet",
    ),
    SUDURPASHCHIM: (
        "Bajura",
        "Bajhang",
        "Achham",
        "Doti",
        "Kailali",
        "Kanchanpur",
        "Dadeldhura",
        "Baitadi",
        "Darchula",
    ),
}

DISTRICTS: Tuple[str, ...] = tuple(
    district for province in PROVINCES for district in _DISTRICTS_BY_PROVINCE[province]
)

DISTRICT_PROVINCE: Mapping[str, str] = MappingProxyType(
    {
        district: province
        for province, districts in _DISTRICTS_BY_PROVINCE.items()
        for district in districts
    }
)

_CANONICAL_DISTRICTS = frozenset(DISTRICTS)

PartyKey = Literal["Congress", "UML", "NCP", "RSP", "RPP", "PSP-N", "Janamat", "UNP", "Others"]

CONGRESS = "Congress"
UML = "UML"
NCP = "NCP"
RSP = "RSP"
RPP = "RPP"
PSP_N = "PSP-N"
JANAMAT = "Janamat"
UNP = "UNP"
OTHERS = "Others"

# Orden de despliegue / Display order.
PARTY_ORDER: Tuple[str, ...] = (CONGRESS, UML, NCP, RSP, RPP, PSP_N, JANAMAT, UNP, OTHERS)
PARTY_KEYS = frozenset(PARTY_ORDER)

# Nombres completos usados en el archivo de símbolos / Full names used by the symbols file.
PARTY_FULL_NAMES: Mapping[str, str] = MappingProxyType(
    {
        CONGRESS: "Nepali Congress",
        UML: "CPN (UML)",
        NCP: "Nepali Communist Party",
        RSP: "Rastriya Swatantra Party",
        RPP: "Rastriya Prajatantra Party",
        PSP_N: "People's Socialist Party, Nepal",
        JANAMAT: "Janamat Party",
        UNP: "Ujyaalo",
        OTHERS: "",
    }
)


class ConstituencyKey(NamedTuple):
    """Circunscripción FPTP: distrito canónico y ordinal (1-based).

    English: FPTP constituency as canonical district plus 1-based ordinal.
    """

    district: str
    ordinal: int

    @property
    def label(self) -> str:
        return f"{self.district}-{self.ordinal}"


def is_canonical_district(name: str) -> bool:
    """Indica si el nombre pertenece a los 77 distritos. / Whether the name is one of the 77 districts."""
    return name in _CANONICAL_DISTRICTS


def vote_key(district: str, ordinal: int | str, party: str) -> str:
    """Construye la clave plana de votos.

    El formato debe coincidir exactamente entre el poller y la vista; cualquier
    divergencia pierde datos en silencio.

    English:
        Build the flattened vote key ``"{district}-{ordinal}|{party}"``. The
        format must match exactly between the poller and the viewer; any
        divergence silently drops data.
    """
    return f"{district}-{ordinal}|{party}"


def parse_vote_key(key: str) -> Tuple[ConstituencyKey, str]:
    """Inverse of :func:`vote_key`. Raises ``ValueError`` on malformed keys."""
    constituency, sep, party = key.rpartition("|")
    if not sep or not constituency or not party:
        raise ValueError(f"Malformed vote key: {key!r}")
    district, sep, ordinal = constituency.rpartition("-")
    if not sep or not district or not ordinal.isdigit() or int(ordinal) < 1:
        raise ValueError(f"Malformed vote key: {key!r}")
    return ConstituencyKey(district, int(ordinal)), party
