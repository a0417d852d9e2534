from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from domain.models import UtilityType

ENERGY_PROVIDERS: tuple[str, ...] = (
    "Enel Energia", "Eni Plenitude", "Edison Energia", "A2A Energia", "Sorgenia",
    "Hera Comm", "Iren Mercato", "Acea Energia", "AGSM AIM Energia", "Alperia Energia",
    "Dolomiti Energia", "Estra Energie", "Illumia", "Wekiwi", "NeN",
    "Octopus Energy Italia", "Iberdrola Italia", "Pulsee Luce e Gas", "Vivigas", "Metamer",
    "Optima Italia", "ABenergie", "Bluenergy Group", "E.ON Energia Italia", "ENGIE Italia",
    "Axpo Energy Italia", "Duferco Energia", "Green Network", "Gritti Energia", "Energia Pulita",
    "Energia Italiana", "Energia Futura", "Enercom Luce e Gas", "Enerxenia", "ETRA Energia",
    "Gas Sales Energia", "Gas Plus Energia", "Gas Intensive", "Global Power", "H2O Power",
    "Insieme Energia", "Italia Gas e Luce", "Lenergia", "Linea Energia", "NORD Energia",
    "Onda Energia", "Padania Energia", "Power Energia", "Primacall Energia", "RePower Italia",
    "San Marco Energia", "Sinergas", "Soenergy", "Spigas Clienti", "Start Romagna",
    "TATE Energia", "Umbria Energy", "Valori Energia", "VIVIenergia", "WePower",
    "Yes Energy", "Servizio Elettrico Nazionale", "Servizio Tutela Gas",
)

WATER_PROVIDERS: tuple[str, ...] = (
    "ACEA ATO 2", "ACEA ATO", "SMAT", "Iren Acqua", "Hera Acqua", "Publiacqua",
    "Acquedotto Pugliese", "Abbanoa", "AMGA", "CAP Holding", "BrianzAcque",
    "Acqua Novara VCO", "Acque Veronesi", "Acque Bresciane", "Acque del Chiampo",
    "GESESA", "CIIP", "ASA Livorno", "Acque Toscane", "GAIA", "ABC Napoli",
    "Lario Reti Holding", "Acqua Latina", "Alto Calore Servizi", "Siciliacque",
    "Caltaqua", "Abbanoa Sardegna", "Sorical", "Acque Potabili",
)

TELECOM_PROVIDERS: tuple[str, ...] = (
    "TIM", "Vodafone Italia", "Vodafone", "WindTre", "Wind Tre", "Iliad", "Fastweb",
    "Tiscali", "Eolo", "Linkem", "Sky Wifi", "PosteMobile", "CoopVoce", "Kena Mobile",
    "Kena", "ho. Mobile", "ho Mobile", "Very Mobile",
)

STREAMING_PROVIDERS: tuple[str, ...] = (
    "Sky", "NOW", "NOW TV", "Netflix", "Amazon Prime Video", "Amazon Prime",
    "Disney+", "Disney Plus", "DAZN", "Apple TV+", "Apple TV", "Spotify", "YouTube Premium",
)

WASTE_PROVIDERS: tuple[str, ...] = (
    "Hera Ambiente", "A2A Ambiente", "Iren Ambiente", "Veritas", "AMSA",
    "ASIA Napoli", "AMIU", "RAP Palermo", "SEI Toscana",
)

CONDOMINIUM_KEYWORDS: tuple[str, ...] = (
    "condominio", "spese condominiali", "amministratore", "quote condominiali",
)

FAMILY_TRANSFER_PATTERNS: tuple[str, ...] = (
    r"trasferimento.*mam",
    r"bonifico.*mam",
    r"mamy",
    r"mamma",
)


@dataclass(frozen=True)
class ProviderDetection:
    provider: Optional[str]
    type: Optional[UtilityType]
    confidence: str = "low"


@dataclass(frozen=True)
class ProviderRegistry:
    """
    Lookup table of known billers, injected into the classifier.

    Swap it for another market's lists (or a tiny test table) without
    touching classification rules.
    """

    energy: tuple[str, ...] = ENERGY_PROVIDERS
    water: tuple[str, ...] = WATER_PROVIDERS
    telecom: tuple[str, ...] = TELECOM_PROVIDERS
    streaming: tuple[str, ...] = STREAMING_PROVIDERS
    waste: tuple[str, ...] = WASTE_PROVIDERS
    condominium_keywords: tuple[str, ...] = CONDOMINIUM_KEYWORDS
    family_transfer_patterns: tuple[str, ...] = FAMILY_TRANSFER_PATTERNS
    condominium_label: str = "Condominio"
    _family_re: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        pattern = "|".join(self.family_transfer_patterns) or r"(?!x)x"
        object.__setattr__(self, "_family_re", re.compile(pattern, re.IGNORECASE))

    def detect_provider(self, text: str | None) -> ProviderDetection:
        if not text:
            return ProviderDetection(provider=None, type=None)
        normalized = text.lower().strip()
        words = normalized.split()

        # Energy also matches on a distinctive word of the provider name ("enel", "sorgenia").
        for provider in self.energy:
            name = provider.lower()
            if name in normalized or any(len(word) > 3 and word in name for word in words):
                return ProviderDetection(provider=provider, type=UtilityType.ENERGY, confidence="high")

        for providers, utility_type in (
            (self.water, UtilityType.WATER),
            (self.telecom, UtilityType.TELECOM),
            (self.streaming, UtilityType.STREAMING),
            (self.waste, UtilityType.WASTE),
        ):
            for provider in providers:
                if provider.lower() in normalized:
                    return ProviderDetection(provider=provider, type=utility_type, confidence="high")

        for keyword in self.condominium_keywords:
            if keyword in normalized:
                return ProviderDetection(
                    provider=self.condominium_label, type=UtilityType.CONDOMINIUM, confidence="medium"
                )

        return ProviderDetection(provider=None, type=None)

    def is_utility_provider(self, text: str | None) -> bool:
        detected = self.detect_provider(text)
        return detected.provider is not None and detected.type != UtilityType.STREAMING

    def mentions_streaming(self, text: str | None) -> bool:
        lowered = (text or "").lower()
        return any(provider.lower() in lowered for provider in self.streaming)

    def is_family_transfer_text(self, text: str | None) -> bool:
        return bool(self._family_re.search(text or ""))


DEFAULT_REGISTRY = ProviderRegistry()
