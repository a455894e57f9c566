"""
Calcolatore Prezzi e IVA
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)

Funzioni pure (nessun accesso al database) che, dato il campo
modificato dall'utente e i valori correnti del form, ricalcolano
tutti gli altri campi.

Equazioni (r = aliquota/100, m = margine/100, S = spedizione):
- cost_ttc = cost_ht * (1 + r)
- price_ht = cost_ht * (1 + m)
- margin_ht = price_ht - cost_ht
- margin_ttc = price_ttc - cost_ttc
- total_amount = price_ttc + S

Regime IVA:
- standard: price_ttc = price_ht * (1 + r), tva = price_ht * r
- margine:  tva = margin_ht * r, price_ttc = cost_ht + margin_ht + tva

Ogni passaggio viene arrotondato a 2 decimali (ROUND_HALF_UP):
le trasformazioni concatenate non sono inverse esatte e possono
differire di un centesimo.

Un costo HT non positivo (in input o derivato) o un denominatore
non positivo producono uno snapshot azzerato: il calcolatore non
solleva mai eccezioni per motivi numerici.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Callable, Optional

from repairdesk.schemas.pricing import PriceField, PriceInputs, PriceSnapshot, TvaMode

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    """Arrotonda a 2 decimali, metà verso l'alto."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _rate(inputs: PriceInputs) -> Decimal:
    return inputs.tva_rate / HUNDRED


def _margin(margin_percent: Decimal) -> Decimal:
    return margin_percent / HUNDRED


# ------------------------------------------------------------
# Costruzione snapshot
# ------------------------------------------------------------

def zero_snapshot(inputs: PriceInputs, margin_percent: Optional[Decimal] = None) -> PriceSnapshot:
    """
    Snapshot azzerato per input non calcolabili.

    Il totale resta pari alle spese di spedizione (price_ttc + S con price_ttc = 0).
    Il margine percentuale conserva il valore corrente, salvo quando è un
    campo derivato (in quel caso il chiamante passa 0).
    Spedizione e margine non vengono azzerati di proposito: così resta
    valida la relazione total_amount = price_ttc + shipping_cost.
    """
    held_margin = inputs.margin_percent if margin_percent is None else margin_percent
    return PriceSnapshot(
        cost_ht=ZERO,
        cost_ttc=ZERO,
        price_ht=ZERO,
        price_ttc=ZERO,
        margin_percent=round_money(held_margin),
        margin_ht=ZERO,
        margin_ttc=ZERO,
        shipping_cost=round_money(inputs.shipping_cost),
        total_amount=round_money(inputs.shipping_cost),
        tva_amount=ZERO,
        tva_rate=inputs.tva_rate,
        tva_mode=inputs.tva_mode,
    )


def _build(
    inputs: PriceInputs,
    cost_ht: Decimal,
    cost_ttc: Decimal,
    price_ht: Decimal,
    margin_percent: Decimal,
) -> PriceSnapshot:
    """Completa lo snapshot a partire da costo e prezzo HT già risolti."""
    rate = _rate(inputs)
    margin_ht = round_money(price_ht - cost_ht)

    if inputs.tva_mode == TvaMode.MARGIN:
        tva_amount = round_money(margin_ht * rate)
        price_ttc = round_money(cost_ht + margin_ht + tva_amount)
    else:
        tva_amount = round_money(price_ht * rate)
        price_ttc = round_money(price_ht * (ONE + rate))

    margin_ttc = round_money(price_ttc - cost_ttc)
    shipping_cost = round_money(inputs.shipping_cost)

    return PriceSnapshot(
        cost_ht=cost_ht,
        cost_ttc=cost_ttc,
        price_ht=price_ht,
        price_ttc=price_ttc,
        margin_percent=round_money(margin_percent),
        margin_ht=margin_ht,
        margin_ttc=margin_ttc,
        shipping_cost=shipping_cost,
        total_amount=round_money(price_ttc + shipping_cost),
        tva_amount=tva_amount,
        tva_rate=inputs.tva_rate,
        tva_mode=inputs.tva_mode,
    )


# ------------------------------------------------------------
# Trasformazioni (una per campo attivo)
# ------------------------------------------------------------

def calculate_from_cost_ht(value: Decimal, inputs: PriceInputs) -> PriceSnapshot:
    cost_ht = round_money(value)
    if cost_ht <= ZERO:
        return zero_snapshot(inputs)

    rate = _rate(inputs)
    cost_ttc = round_money(cost_ht * (ONE + rate))
    price_ht = round_money(cost_ht * (ONE + _margin(inputs.margin_percent)))
    return _build(inputs, cost_ht, cost_ttc, price_ht, inputs.margin_percent)


def calculate_from_cost_ttc(value: Decimal, inputs: PriceInputs) -> PriceSnapshot:
    """Il costo TTC digitato resta invariato; il costo HT è derivato."""
    rate = _rate(inputs)
    if ONE + rate <= ZERO:
        return zero_snapshot(inputs)

    cost_ttc = round_money(value)
    cost_ht = round_money(cost_ttc / (ONE + rate))
    if cost_ht <= ZERO:
        return zero_snapshot(inputs)

    price_ht = round_money(cost_ht * (ONE + _margin(inputs.margin_percent)))
    return _build(inputs, cost_ht, cost_ttc, price_ht, inputs.margin_percent)


def calculate_from_price_ht(value: Decimal, inputs: PriceInputs) -> PriceSnapshot:
    margin = _margin(inputs.margin_percent)
    if ONE + margin <= ZERO:
        return zero_snapshot(inputs)

    price_ht = round_money(value)
    cost_ht = round_money(price_ht / (ONE + margin))
    if cost_ht <= ZERO:
        return zero_snapshot(inputs)

    cost_ttc = round_money(cost_ht * (ONE + _rate(inputs)))
    return _build(inputs, cost_ht, cost_ttc, price_ht, inputs.margin_percent)


def calculate_from_price_ttc(value: Decimal, inputs: PriceInputs) -> PriceSnapshot:
    """
    Ricava il costo HT dal prezzo di vendita TTC.

    In regime standard: price_ht = price_ttc / (1 + r), cost_ht = price_ht / (1 + m).

    In regime del margine il prezzo TTC include la spedizione: con
    base = price_ttc - S si risolve base = cost_ht * (1 + m * (1 + r))
    rispetto a cost_ht. Il price_ttc restituito è quindi quello senza
    spedizione, e il totale torna pari al valore digitato.
    """
    rate = _rate(inputs)
    margin = _margin(inputs.margin_percent)
    price_ttc = round_money(value)

    if inputs.tva_mode == TvaMode.MARGIN:
        denominator = ONE + margin * (ONE + rate)
        if denominator <= ZERO:
            return zero_snapshot(inputs)
        base_price = round_money(price_ttc - round_money(inputs.shipping_cost))
        cost_ht = round_money(base_price / denominator)
        if cost_ht <= ZERO:
            return zero_snapshot(inputs)
        price_ht = round_money(cost_ht * (ONE + margin))
    else:
        if ONE + rate <= ZERO or ONE + margin <= ZERO:
            return zero_snapshot(inputs)
        price_ht = round_money(price_ttc / (ONE + rate))
        cost_ht = round_money(price_ht / (ONE + margin))
        if cost_ht <= ZERO:
            return zero_snapshot(inputs)

    cost_ttc = round_money(cost_ht * (ONE + rate))
    return _build(inputs, cost_ht, cost_ttc, price_ht, inputs.margin_percent)


def calculate_from_margin_percent(value: Decimal, inputs: PriceInputs) -> PriceSnapshot:
    cost_ht = round_money(inputs.cost_ht)
    margin_percent = round_money(value)
    if cost_ht <= ZERO:
        return zero_snapshot(inputs, margin_percent)

    cost_ttc = round_money(cost_ht * (ONE + _rate(inputs)))
    price_ht = round_money(cost_ht * (ONE + _margin(margin_percent)))
    return _build(inputs, cost_ht, cost_ttc, price_ht, margin_percent)


def calculate_from_margin_ht(value: Decimal, inputs: PriceInputs) -> PriceSnapshot:
    cost_ht = round_money(inputs.cost_ht)
    if cost_ht <= ZERO:
        return zero_snapshot(inputs, ZERO)

    margin_ht = round_money(value)
    price_ht = round_money(cost_ht + margin_ht)
    margin_percent = round_money(margin_ht / cost_ht * HUNDRED)
    cost_ttc = round_money(cost_ht * (ONE + _rate(inputs)))
    return _build(inputs, cost_ht, cost_ttc, price_ht, margin_percent)


def calculate_from_margin_ttc(value: Decimal, inputs: PriceInputs) -> PriceSnapshot:
    """
    Ricava il margine HT dal margine TTC.

    standard: price_ttc = cost_ttc + margin_ttc, price_ht = price_ttc / (1 + r)
    margine:  price_ttc = cost_ht + margin_ht * (1 + r), da cui
              margin_ht = (price_ttc - cost_ht) / (1 + r)
    """
    cost_ht = round_money(inputs.cost_ht)
    rate = _rate(inputs)
    if cost_ht <= ZERO or ONE + rate <= ZERO:
        return zero_snapshot(inputs, ZERO)

    cost_ttc = round_money(cost_ht * (ONE + rate))
    price_ttc = round_money(cost_ttc + round_money(value))

    if inputs.tva_mode == TvaMode.MARGIN:
        margin_ht = round_money((price_ttc - cost_ht) / (ONE + rate))
        price_ht = round_money(cost_ht + margin_ht)
    else:
        price_ht = round_money(price_ttc / (ONE + rate))
        margin_ht = round_money(price_ht - cost_ht)

    margin_percent = round_money(margin_ht / cost_ht * HUNDRED)
    return _build(inputs, cost_ht, cost_ttc, price_ht, margin_percent)


def calculate_from_shipping_cost(value: Decimal, inputs: PriceInputs) -> PriceSnapshot:
    """Nuove spese di spedizione: ricalcolo dal costo HT corrente."""
    updated = inputs.model_copy(update={"shipping_cost": value})
    return calculate_from_cost_ht(updated.cost_ht, updated)


def calculate_from_tva_rate(value: Decimal, inputs: PriceInputs) -> PriceSnapshot:
    """Nuova aliquota (o nuovo regime IVA): ricalcolo dal costo HT corrente."""
    updated = inputs.model_copy(update={"tva_rate": value})
    return calculate_from_cost_ht(updated.cost_ht, updated)


_TRANSFORMS: dict[PriceField, Callable[[Decimal, PriceInputs], PriceSnapshot]] = {
    PriceField.COST_HT: calculate_from_cost_ht,
    PriceField.COST_TTC: calculate_from_cost_ttc,
    PriceField.PRICE_HT: calculate_from_price_ht,
    PriceField.PRICE_TTC: calculate_from_price_ttc,
    PriceField.MARGIN_PERCENT: calculate_from_margin_percent,
    PriceField.MARGIN_HT: calculate_from_margin_ht,
    PriceField.MARGIN_TTC: calculate_from_margin_ttc,
    PriceField.SHIPPING_COST: calculate_from_shipping_cost,
    PriceField.TVA_RATE: calculate_from_tva_rate,
}


def calculate(active_field: PriceField, inputs: PriceInputs) -> PriceSnapshot:
    """
    Ricalcola tutti i campi a partire dal campo attivo.

    Args:
        active_field: Campo modificato per ultimo dall'utente
        inputs: Valori correnti del form (il valore del campo attivo compreso)

    Returns:
        PriceSnapshot coerente con le equazioni del regime IVA scelto
        (snapshot azzerato se un risultato eccede la precisione decimale)
    """
    active_field = PriceField(active_field)
    transform = _TRANSFORMS[active_field]
    try:
        snapshot = transform(getattr(inputs, active_field.value), inputs)
    except InvalidOperation:
        logger.warning("Ricalcolo da %s fuori precisione: snapshot azzerato", active_field.value)
        return zero_snapshot(inputs)
    logger.debug(
        "Ricalcolo da %s (%s): prezzo TTC %s, totale %s",
        active_field.value,
        inputs.tva_mode.value,
        snapshot.price_ttc,
        snapshot.total_amount,
    )
    return snapshot
