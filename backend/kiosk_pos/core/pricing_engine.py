"""
Motor de resolución de listas de precios.

Dado un producto, las listas de precios del kiosco y un instante, determina la
única lista efectiva (o ninguna) y calcula el precio final.

Reglas:
    1. Candidatas: listas activas que no excluyen la categoría ni el producto.
    2. Ventana horaria: una lista sin horario solo se aplica manualmente; con
       horario, aplica si algún tramo coincide con el día de la semana
       (0 = domingo) y la hora cae en [inicio, fin). Tramos con fin <= inicio
       no coinciden nunca (no se soportan tramos que cruzan medianoche).
    3. Gana la mayor prioridad; en empate, la lista creada más recientemente
       y luego el id más alto.
    4. Sin lista elegible: precio base.
    5. Con lista: base * (1 + ajuste / 100), redondeado según la regla de la
       lista y cuantizado a centavos.

Todo el módulo es puro: no consulta la base ni el reloj. El instante ``at``
siempre se inyecta, ya convertido a la hora local del kiosco.
"""
from dataclasses import dataclass
from datetime import datetime, time
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, List, Optional

from kiosk_pos.core.errors import ValidationError


CENTS = Decimal("0.01")

ROUNDING_STEPS = {
    "none": None,
    "nearest_10": Decimal("10"),
    "nearest_50": Decimal("50"),
    "nearest_100": Decimal("100"),
}


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value or 0))


def round_price(amount: Any, rule: Optional[str]) -> Decimal:
    """
    Round ``amount`` to the nearest multiple the rule names.

    Exact halves round half-up (away from zero): 125 -> 130 with nearest_10.
    ``none`` (or a missing rule) returns the amount unchanged.
    """
    value = _to_decimal(amount)
    key = rule or "none"
    if key not in ROUNDING_STEPS:
        raise ValidationError(f"Regla de redondeo desconocida: {rule}")
    step = ROUNDING_STEPS[key]
    if step is None:
        return value
    return (value / step).quantize(Decimal("1"), rounding=ROUND_HALF_UP) * step


# "24:00" closes a window at midnight; it only makes sense as an end bound
END_OF_DAY = time.max


def parse_hhmm(value: Any) -> Optional[time]:
    if not isinstance(value, str):
        return None
    if value.strip() == "24:00":
        return END_OF_DAY
    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError:
        return None


def format_hhmm(value: time) -> str:
    return "24:00" if value == END_OF_DAY else value.strftime("%H:%M")

    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError:
        return None


def day_of_week(at: datetime) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (at.weekday() + 1) % 7


@dataclass(frozen=True)
class ScheduleWindow:
    day: int
    start: time
    end: time

    @classmethod
    def from_entry(cls, entry: Any) -> Optional["ScheduleWindow"]:
        """Build a window from a stored ``{day, start, end}`` entry; None if malformed."""
        if not isinstance(entry, dict):
            return None
        day = entry.get("day")
        start = parse_hhmm(entry.get("start"))
        end = parse_hhmm(entry.get("end"))
        if not isinstance(day, int) or isinstance(day, bool) or not 0 <= day <= 6:
            return None
        if start is None or end is None:
            return None
        return cls(day=day, start=start, end=end)

    @property
    def is_valid(self) -> bool:
        return self.end > self.start

    def contains(self, at: datetime) -> bool:
        if not self.is_valid or day_of_week(at) != self.day:
            return False
        return self.start <= at.time() < self.end


def schedule_windows(price_list: Any) -> List[ScheduleWindow]:
    windows = []
    for entry in price_list.schedule or []:
        window = ScheduleWindow.from_entry(entry)
        if window is not None:
            windows.append(window)
    return windows


def is_in_window(price_list: Any, at: datetime) -> bool:
    # Empty schedule means manual activation only
    if not price_list.schedule:
        return False
    return any(window.contains(at) for window in schedule_windows(price_list))


def _contains_id(ids: Optional[Iterable[Any]], value: Any) -> bool:
    if value is None or not ids:
        return False
    return str(value) in {str(i) for i in ids}


def applies_to(price_list: Any, product: Any) -> bool:
    """False when the list excludes the product or its category."""
    if _contains_id(price_list.excluded_category_ids, getattr(product, "category_id", None)):
        return False
    if _contains_id(price_list.excluded_product_ids, product.id):
        return False
    return True


def _precedence(price_list: Any):
    return (
        price_list.priority or 0,
        getattr(price_list, "created_at", None) or datetime.min,
        price_list.id or 0,
    )


def resolve_price_list(
    product: Any,
    price_lists: Iterable[Any],
    at: datetime,
    manual_list_id: Optional[int] = None,
) -> Optional[Any]:
    """Return the single price list effective for ``product`` at ``at``, or None."""
    lists = list(price_lists)

    if manual_list_id is not None:
        # A manual choice replaces automatic resolution entirely
        for price_list in lists:
            if price_list.id == manual_list_id:
                if price_list.is_active and applies_to(price_list, product):
                    return price_list
                return None
        return None

    eligible = [
        pl for pl in lists
        if pl.is_active and applies_to(pl, product) and is_in_window(pl, at)
    ]
    if not eligible:
        return None
    return max(eligible, key=_precedence)


def apply_price_list(base_price: Any, price_list: Optional[Any]) -> Decimal:
    base = _to_decimal(base_price)
    if price_list is None:
        return base.quantize(CENTS, rounding=ROUND_HALF_UP)
    pct = _to_decimal(price_list.adjustment_percentage)
    adjusted = base * (Decimal("1") + pct / Decimal("100"))
    rounded = round_price(adjusted, price_list.rounding_rule)
    return rounded.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceResolution:
    base_price: Decimal
    final_price: Decimal
    price_list: Optional[Any] = None

    @property
    def price_list_id(self) -> Optional[int]:
        return self.price_list.id if self.price_list is not None else None

    @property
    def price_list_name(self) -> Optional[str]:
        return self.price_list.name if self.price_list is not None else None


def resolve(
    product: Any,
    price_lists: Iterable[Any],
    at: datetime,
    manual_list_id: Optional[int] = None,
) -> PriceResolution:
    selected = resolve_price_list(product, price_lists, at, manual_list_id=manual_list_id)
    base = _to_decimal(product.price).quantize(CENTS, rounding=ROUND_HALF_UP)
    return PriceResolution(
        base_price=base,
        final_price=apply_price_list(product.price, selected),
        price_list=selected,
    )


def resolve_effective_price(
    product: Any,
    price_lists: Iterable[Any],
    at: datetime,
    manual_list_id: Optional[int] = None,
) -> Decimal:
    return resolve(product, price_lists, at, manual_list_id=manual_list_id).final_price
