"""Tariff bracket matching - picks the pricing tier for a payroll-slip count"""

from decimal import Decimal
from typing import Iterable, Optional

from billing_gateway.domain.catalog import BracketCatalog, brackets_for_year
from billing_gateway.domain.exceptions import NoBracketMatchError
from billing_gateway.domain.models import Bracket, BracketMatch
from billing_gateway.infrastructure.observability.logging import log_bracket_miss
from billing_gateway.infrastructure.observability.metrics import record_bracket_match
from billing_gateway.utils.money import round2


def total_units(regular: int, extra: int = 0) -> int:
    """Slips billed for a period: regular payroll slips plus extra ones"""
    if regular < 0 or extra < 0:
        raise ValueError(f"Slip counts cannot be negative (regular={regular}, extra={extra})")
    return regular + extra


def match_bracket(units: int, year: int, brackets: Iterable[Bracket]) -> Optional[Bracket]:
    """
    First bracket of `year` whose [min_units, max_units] range contains `units`.

    Catalog ranges are expected not to overlap; when they do, catalog order
    decides. Returns None when nothing covers the count.
    """
    for bracket in brackets_for_year(brackets, year):
        if bracket.covers(units):
            return bracket
    return None


def find_bracket(units: int, year: int, brackets: Iterable[Bracket]) -> Bracket:
    """Like match_bracket, but raises NoBracketMatchError on a miss"""
    bracket = match_bracket(units, year, brackets)
    if bracket is None:
        raise NoBracketMatchError(f"No {year} bracket covers {units} slips")
    return bracket


def find_bracket_by_name(name: str, year: int, brackets: Iterable[Bracket]) -> Optional[Bracket]:
    for bracket in brackets_for_year(brackets, year):
        if bracket.name == name:
            return bracket
    return None


def bracket_amount(bracket: Bracket) -> Decimal:
    """Billable amount for a bracket: rate x hours, rounded to cents"""
    return round2(bracket.rate * bracket.hours)


def build_match(bracket: Bracket, units: int) -> BracketMatch:
    return BracketMatch(bracket=bracket, units=units, amount=bracket_amount(bracket))


class BracketSelector:
    """
    Holds the bracket selected for a record being edited.

    Auto-select (the default) re-matches whenever the slip count or the
    catalog changes. A manual pick disables auto-select and survives slip
    count changes until enable_auto_select() is called. A miss never clears
    the current selection.
    """

    def __init__(self, catalog: BracketCatalog, auto_select: bool = True):
        self.catalog = catalog
        self.auto_select = auto_select
        self.units = 0
        self._match: Optional[BracketMatch] = None

    @property
    def match(self) -> Optional[BracketMatch]:
        return self._match

    def set_units(self, units: int) -> Optional[BracketMatch]:
        self.units = units
        if self.auto_select:
            self._rematch()
        elif self._match is not None:
            self._match = build_match(self._match.bracket, units)
        return self._match

    def set_catalog(self, catalog: BracketCatalog) -> Optional[BracketMatch]:
        """Switch anchor year/brackets (e.g. after picking a client activated in another year)"""
        self.catalog = catalog
        if self.auto_select:
            self._rematch()
        elif self._match is not None:
            pinned = find_bracket_by_name(self._match.bracket.name, catalog.year, catalog.brackets)
            if pinned is not None:
                self._match = build_match(pinned, self.units)
        return self._match

    def select(self, name: str) -> BracketMatch:
        """Pin a bracket by name; disables auto-select"""
        bracket = find_bracket_by_name(name, self.catalog.year, self.catalog.brackets)
        if bracket is None:
            raise NoBracketMatchError(f"Bracket {name!r} not found for {self.catalog.year}")

        self.auto_select = False
        self._match = build_match(bracket, self.units)
        return self._match

    def enable_auto_select(self) -> Optional[BracketMatch]:
        self.auto_select = True
        self._rematch()
        return self._match

    def _rematch(self) -> None:
        if self.units <= 0:
            return

        try:
            bracket = find_bracket(self.units, self.catalog.year, self.catalog.brackets)
        except NoBracketMatchError as e:
            record_bracket_match(matched=False)
            log_bracket_miss(self.units, self.catalog.year, str(e))
            return

        record_bracket_match(matched=True)
        self._match = build_match(bracket, self.units)
