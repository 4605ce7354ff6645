"""Shared limit aggregation - cards from one bank quoting a single combined limit"""

from typing import Dict, Iterable, List, Optional, Set

from cardwise.domain.models import CreditInstrument, PortfolioTotals, SharedLimitGroup


def active_instruments(instruments: Iterable[CreditInstrument]) -> List[CreditInstrument]:
    """Drop archived cards, preserving order"""
    return [card for card in instruments if not card.is_archived]


def aggregate_shared_limits(instruments: Iterable[CreditInstrument]) -> Dict[str, SharedLimitGroup]:
    """
    Group non-archived cards with use_shared_limit by bank_id.

    Every card in a shared arrangement quotes the same combined limit, so the
    group's shared_limit is the credit_limit of the first member encountered,
    never the sum. total_usage is the sum of member usages.

    Recomputed on every call; nothing is cached.
    """
    groups: Dict[str, SharedLimitGroup] = {}

    for card in active_instruments(instruments):
        if not card.use_shared_limit:
            continue

        group = groups.get(card.bank_id)
        if group is None:
            group = SharedLimitGroup(
                bank_id=card.bank_id,
                shared_limit=card.credit_limit,
                total_usage=0,
            )
            groups[card.bank_id] = group

        group.total_usage += card.current_usage
        group.members.append(card)

    return groups


def get_group_for(instruments: Iterable[CreditInstrument], bank_id: str) -> Optional[SharedLimitGroup]:
    """Shared group of a bank, or None when none of its cards share a limit"""
    return aggregate_shared_limits(instruments).get(bank_id)


def shared_limit_usage(instruments: Iterable[CreditInstrument], bank_id: str) -> int:
    """Combined usage of a bank's shared-limit cards (0 when there is no group)"""
    group = get_group_for(instruments, bank_id)
    return group.total_usage if group else 0


def total_credit_limit(instruments: Iterable[CreditInstrument]) -> int:
    """
    Total limit across active cards, counting each shared bank limit once.

    Cards with an individual limit contribute their own credit_limit. The first
    card of a shared bank contributes the group's shared_limit; later cards of
    the same bank are skipped.
    """
    cards = active_instruments(instruments)
    groups = aggregate_shared_limits(cards)
    processed_banks: Set[str] = set()
    total = 0

    for card in cards:
        if not card.use_shared_limit:
            total += card.credit_limit
            continue

        if card.bank_id in processed_banks:
            continue

        processed_banks.add(card.bank_id)
        total += groups[card.bank_id].shared_limit

    return total


def portfolio_totals(instruments: Iterable[CreditInstrument]) -> PortfolioTotals:
    """Dashboard totals: de-duplicated limit and summed usage of active cards"""
    cards = active_instruments(instruments)
    return PortfolioTotals(
        total_limit=total_credit_limit(cards),
        total_usage=sum(card.current_usage for card in cards),
    )
