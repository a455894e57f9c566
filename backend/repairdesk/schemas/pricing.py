"""
Schemas Pydantic per il Calcolatore Prezzi
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)

Contiene i tipi di input/output del calcolatore prezzi/IVA:
- PriceField: campo modificato dall'utente (campo attivo)
- TvaMode: regime IVA (ordinario o sul margine)
- PriceInputs: valori correnti del form
- PriceSnapshot: risultato immutabile del calcolo
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from repairdesk.core.config import settings

# Limite dei valori del form: i risultati restano entro la precisione decimale (28 cifre)
MAX_AMOUNT = Decimal("999999999.99")


class PriceField(str, Enum):
    """Campi del calcolatore che possono guidare il ricalcolo."""
    COST_HT = "cost_ht"
    COST_TTC = "cost_ttc"
    PRICE_HT = "price_ht"
    PRICE_TTC = "price_ttc"
    MARGIN_PERCENT = "margin_percent"
    MARGIN_HT = "margin_ht"
    MARGIN_TTC = "margin_ttc"
    SHIPPING_COST = "shipping_cost"
    TVA_RATE = "tva_rate"


class TvaMode(str, Enum):
    """Regime IVA applicato al prezzo di vendita."""
    STANDARD = "standard"  # IVA sull'intero imponibile
    MARGIN = "margin"      # IVA sul solo margine (beni usati)


_MONEY_FIELDS = (
    "cost_ht",
    "cost_ttc",
    "price_ht",
    "price_ttc",
    "margin_percent",
    "margin_ht",
    "margin_ttc",
    "shipping_cost",
    "tva_rate",
)


class PriceInputs(BaseModel):
    """
    Valori correnti del calcolatore.

    I campi lasciati vuoti valgono 0 (non "invariato").
    Ogni valore deve restare entro ±MAX_AMOUNT.
    Sono accettati sia il punto che la virgola come separatore decimale.
    """

    cost_ht: Decimal = Field(default=Decimal("0"), ge=-MAX_AMOUNT, le=MAX_AMOUNT, description="Costo d'acquisto HT")
    cost_ttc: Decimal = Field(default=Decimal("0"), ge=-MAX_AMOUNT, le=MAX_AMOUNT, description="Costo d'acquisto TTC")
    price_ht: Decimal = Field(default=Decimal("0"), ge=-MAX_AMOUNT, le=MAX_AMOUNT, description="Prezzo di vendita HT")
    price_ttc: Decimal = Field(default=Decimal("0"), ge=-MAX_AMOUNT, le=MAX_AMOUNT, description="Prezzo di vendita TTC")
    margin_percent: Decimal = Field(
        default_factory=lambda: settings.default_margin_percent,
        ge=-MAX_AMOUNT,
        le=MAX_AMOUNT,
        description="Margine percentuale sul costo",
    )
    margin_ht: Decimal = Field(default=Decimal("0"), ge=-MAX_AMOUNT, le=MAX_AMOUNT, description="Margine HT")
    margin_ttc: Decimal = Field(default=Decimal("0"), ge=-MAX_AMOUNT, le=MAX_AMOUNT, description="Margine TTC")
    shipping_cost: Decimal = Field(
        default_factory=lambda: settings.default_shipping_cost,
        ge=-MAX_AMOUNT,
        le=MAX_AMOUNT,
        description="Spese di spedizione",
    )
    tva_rate: Decimal = Field(
        default_factory=lambda: settings.default_tva_rate,
        ge=-MAX_AMOUNT,
        le=MAX_AMOUNT,
        description="Aliquota IVA (%)",
    )
    tva_mode: TvaMode = Field(default=TvaMode.STANDARD, description="Regime IVA")

    @field_validator(*_MONEY_FIELDS, mode="before")
    @classmethod
    def blank_as_zero(cls, v):
        """Vuoto o None → 0; virgola decimale convertita in punto."""
        if v is None:
            return Decimal("0")
        if isinstance(v, str):
            v = v.strip().replace(",", ".")
            if not v:
                return Decimal("0")
        return v


class PriceSnapshot(BaseModel):
    """
    Risultato del calcolo: tutti i campi coerenti tra loro, arrotondati a 2 decimali.

    Immutabile; `price_ttc` è il valore riportato come costo stimato
    sulla scheda di riparazione.
    """

    model_config = ConfigDict(frozen=True)

    cost_ht: Decimal
    cost_ttc: Decimal
    price_ht: Decimal
    price_ttc: Decimal
    margin_percent: Decimal
    margin_ht: Decimal
    margin_ttc: Decimal
    shipping_cost: Decimal
    total_amount: Decimal
    tva_amount: Decimal
    tva_rate: Decimal
    tva_mode: TvaMode


class CalculateRequest(BaseModel):
    """Richiesta di ricalcolo: campo attivo e valori correnti del form."""
    active_field: PriceField
    values: PriceInputs = Field(default_factory=PriceInputs)


class PricingSettingsRead(BaseModel):
    """Configurazione del calcolatore esposta all'interfaccia."""
    tva_rates: list[Decimal]
    default_tva_rate: Decimal
    default_margin_percent: Decimal
    default_shipping_cost: Decimal
    tva_modes: list[TvaMode]
