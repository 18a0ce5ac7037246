"""Payout schedule table and fee calculator.

Vendors pick a payout schedule tier; faster tiers carry a percentage fee
that is capped per payout. The table is static and only changes with a
redeploy. Every function accepts an alternate table so callers (and tests)
can evaluate a different deployment's configuration.

Fee rounding is half-up on the exact decimal product, so 2.5% of 1 kobo
rounds to 0 and 2.5% of 20 kobo rounds to 1 (0.5 -> 1).
"""

import math
from decimal import Decimal, ROUND_HALF_UP
from types import MappingProxyType
from typing import List, Mapping, Optional, Union

import structlog

from .errors import InvalidAmount, UnknownScheduleType
from .formatting import format_currency
from .models import (
    PayoutFeeCalculation,
    PayoutScheduleConfig,
    PayoutScheduleOption,
    PayoutScheduleType,
)

logger = structlog.get_logger(__name__)

ScheduleTable = Mapping[PayoutScheduleType, PayoutScheduleConfig]

PAYOUT_SCHEDULE_CONFIGS: ScheduleTable = MappingProxyType({
    PayoutScheduleType.WEEKLY: PayoutScheduleConfig(
        type=PayoutScheduleType.WEEKLY, fee_percent=0, fee_cap_minor=0, timeline_days=7, label="Standard",
    ),
    PayoutScheduleType.FIVE_DAYS: PayoutScheduleConfig(
        type=PayoutScheduleType.FIVE_DAYS, fee_percent=1, fee_cap_minor=250000, timeline_days=5, label="Early",
    ),
    PayoutScheduleType.THREE_DAYS: PayoutScheduleConfig(
        type=PayoutScheduleType.THREE_DAYS, fee_percent=2.5, fee_cap_minor=400000, timeline_days=3, label="Priority",
    ),
    PayoutScheduleType.TWO_DAYS: PayoutScheduleConfig(
        type=PayoutScheduleType.TWO_DAYS, fee_percent=4, fee_cap_minor=500000, timeline_days=2, label="Fast",
    ),
    PayoutScheduleType.ONE_DAY: PayoutScheduleConfig(
        type=PayoutScheduleType.ONE_DAY, fee_percent=8, fee_cap_minor=500000, timeline_days=1, label="Instant",
    ),
})

_SCHEDULE_DESCRIPTIONS = {
    PayoutScheduleType.WEEKLY: "Weekly store earnings at no extra cost",
    PayoutScheduleType.FIVE_DAYS: "Get store earnings 2 business days earlier with 1% fee",
    PayoutScheduleType.THREE_DAYS: "Fast processing for urgent store cash flow",
    PayoutScheduleType.TWO_DAYS: "Near-instant store earnings for high-volume sellers",
    PayoutScheduleType.ONE_DAY: "Premium option for immediate access to store funds",
}

RECOMMENDED_SCHEDULE = PayoutScheduleType.THREE_DAYS


def parse_schedule_type(value: Union[str, PayoutScheduleType]) -> PayoutScheduleType:
    """Validates an untyped schedule tag (e.g. from storage or a request body)."""
    if isinstance(value, PayoutScheduleType):
        return value
    try:
        return PayoutScheduleType(value)
    except ValueError:
        raise UnknownScheduleType(value) from None


def get_payout_schedule_config(
    schedule_type: Union[str, PayoutScheduleType],
    configs: Optional[ScheduleTable] = None,
) -> PayoutScheduleConfig:
    table = PAYOUT_SCHEDULE_CONFIGS if configs is None else configs
    tag = parse_schedule_type(schedule_type)
    try:
        return table[tag]
    except KeyError:
        raise UnknownScheduleType(schedule_type) from None


def _validate_earnings(amount) -> int:
    if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
        raise InvalidAmount(amount)
    if isinstance(amount, float):
        if not math.isfinite(amount) or not amount.is_integer():
            raise InvalidAmount(amount)
        amount = int(amount)
    elif isinstance(amount, Decimal):
        if not amount.is_finite() or amount != amount.to_integral_value():
            raise InvalidAmount(amount)
        amount = int(amount)
    if amount < 0:
        raise InvalidAmount(amount)
    return amount


def calculate_payout_fee(
    estimated_earnings_minor,
    schedule_type: Union[str, PayoutScheduleType],
    configs: Optional[ScheduleTable] = None,
) -> PayoutFeeCalculation:
    """Projects the fee and net payout for an earnings estimate on a schedule.

    Raises InvalidAmount for negative or fractional amounts and
    UnknownScheduleType for tags outside the table. Zero earnings is valid
    and yields a zero fee.
    """
    earnings = _validate_earnings(estimated_earnings_minor)
    config = get_payout_schedule_config(schedule_type, configs)

    percentage_fee = (Decimal(earnings) * Decimal(str(config.fee_percent)) / Decimal(100)).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    fee_amount = int(percentage_fee)
    if config.fee_cap_minor > 0:
        fee_amount = min(fee_amount, config.fee_cap_minor)

    logger.debug("payout_fee_calculated", schedule_type=config.type.value, earnings=earnings, fee=fee_amount)
    return PayoutFeeCalculation(
        estimated_earnings=earnings,
        fee_amount=fee_amount,
        net_amount=earnings - fee_amount,
        fee_percent=config.fee_percent,
        fee_cap_minor=config.fee_cap_minor,
    )


def _timeline_text(days: int) -> str:
    if days == 1:
        return "Next business day"
    return f"{days} business days"


def get_payout_schedule_options(
    configs: Optional[ScheduleTable] = None,
    currency_code: Optional[str] = None,
) -> List[PayoutScheduleOption]:
    """Display rows for the schedule picker, in table order."""
    table = PAYOUT_SCHEDULE_CONFIGS if configs is None else configs
    options = []
    for schedule_type, config in table.items():
        if config.fee_percent == 0:
            cap_display = "Free"
        elif config.fee_cap_minor > 0:
            cap_display = f"{format_currency(config.fee_cap_minor, currency_code)} max"
        else:
            cap_display = "No cap"
        options.append(PayoutScheduleOption(
            type=schedule_type,
            label=config.label,
            timeline=_timeline_text(config.timeline_days),
            fee_percent=config.fee_percent,
            fee_cap_minor=config.fee_cap_minor,
            fee_cap_display=cap_display,
            description=_SCHEDULE_DESCRIPTIONS.get(schedule_type, ""),
            recommended=schedule_type == RECOMMENDED_SCHEDULE,
        ))
    return options
