from __future__ import annotations

from domain.models import LegacyCategory

# Legacy flat tags that describe a spending area. The cash-flow tags
# (fissa/variabile/carta_credito) are not areas and stay unmapped.
LEGACY_PARENT_MAP: dict[LegacyCategory, str] = {
    LegacyCategory.CASA: "casa_utenze",
    LegacyCategory.CIBO: "alimentari",
    LegacyCategory.TRASPORTI: "trasporti",
    LegacyCategory.SALUTE: "salute",
    LegacyCategory.SVAGO: "tempo_libero",
    LegacyCategory.ABBONAMENTI: "abbonamenti_servizi",
    LegacyCategory.ANIMALI: "animali",
    LegacyCategory.VIAGGI: "viaggi",
    LegacyCategory.VARIE: "altro",
}

CATEGORY_PARENTS: tuple[str, ...] = (
    "casa_utenze",
    "alimentari",
    "ristorazione",
    "trasporti",
    "auto_veicoli",
    "animali",
    "persona_cura",
    "salute",
    "tempo_libero",
    "sport_benessere",
    "viaggi",
    "tecnologia",
    "lavoro_formazione",
    "finanza_obblighi",
    "abbonamenti_servizi",
    "regali_donazioni",
    "extra_imprevisti",
    "altro",
)

# Names returned by the AI categorization function -> category parent ids.
AI_PARENT_MAP: dict[str, str] = {
    "alimentari": "alimentari",
    "ristorazione": "ristorazione",
    "trasporti": "trasporti",
    "casa": "casa_utenze",
    "utenze": "casa_utenze",
    "casa & utenze": "casa_utenze",
    "salute": "salute",
    "abbigliamento": "persona_cura",
    "persona": "persona_cura",
    "persona & cura": "persona_cura",
    "svago": "tempo_libero",
    "tempo libero": "tempo_libero",
    "tecnologia": "tecnologia",
    "figli": "altro",
    "animali": "animali",
    "finanza": "finanza_obblighi",
    "finanza & obblighi": "finanza_obblighi",
    "altro": "altro",
    "viaggi": "viaggi",
    "sport": "sport_benessere",
    "sport & benessere": "sport_benessere",
    "lavoro": "lavoro_formazione",
    "lavoro & formazione": "lavoro_formazione",
    "abbonamenti": "abbonamenti_servizi",
    "abbonamenti & servizi": "abbonamenti_servizi",
    "regali": "regali_donazioni",
    "regali & donazioni": "regali_donazioni",
    "extra": "extra_imprevisti",
    "extra & imprevisti": "extra_imprevisti",
    "auto": "auto_veicoli",
    "auto & veicoli": "auto_veicoli",
}

AI_CHILD_MAP: dict[str, str] = {
    "supermercato": "supermercato",
    "frutta/verdura": "mercato",
    "macelleria": "macelleria_pescheria",
    "panetteria": "fornaio",
    "bevande": "bevande",
    "surgelati": "supermercato",
    "ristorante": "ristorante",
    "bar/caffè": "bar_caffe",
    "bar": "bar_caffe",
    "caffè": "bar_caffe",
    "fast food": "fast_food",
    "pizzeria": "pizzeria",
    "delivery": "delivery",
    "mensa": "ristorante",
    "carburante": "carburante",
    "parcheggio": "parcheggi",
    "mezzi pubblici": "trasporto_pubblico",
    "taxi": "taxi_ncc",
    "pedaggi": "pedaggi",
    "noleggio": "noleggio",
    "affitto": "affitto_mutuo",
    "mutuo": "affitto_mutuo",
    "manutenzione": "manutenzione_ordinaria",
    "arredamento": "arredamento",
    "elettrodomestici": "elettrodomestici",
    "luce": "luce",
    "gas": "gas",
    "acqua": "acqua",
    "internet": "internet_casa",
    "telefono": "telefonia",
    "farmacia": "farmaci",
    "dentista": "dentista",
    "varie": "non_classificato",
}


def map_legacy_category(category: LegacyCategory | None) -> str | None:
    if category is None:
        return None
    return LEGACY_PARENT_MAP.get(category)


def normalize_ai_parent(raw: str | None) -> str:
    key = (raw or "").strip().lower()
    if not key:
        return "altro"
    if key in CATEGORY_PARENTS:
        return key
    return AI_PARENT_MAP.get(key, "altro")


def normalize_ai_child(raw: str | None) -> str | None:
    key = (raw or "").strip().lower()
    if not key:
        return None
    return AI_CHILD_MAP.get(key, key.replace(" ", "_"))
