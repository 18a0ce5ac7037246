import math
from decimal import Decimal
from fractions import Fraction

import pytest

from services.wallet.errors import InvalidAmount, UnknownScheduleType
from services.wallet.models import PayoutScheduleConfig, PayoutScheduleType
from services.wallet.schedule import (
    PAYOUT_SCHEDULE_CONFIGS,
    calculate_payout_fee,
    get_payout_schedule_config,
    get_payout_schedule_options,
    parse_schedule_type,
)

# A deployment whose table differs from the default one.
CUSTOM_TABLE = {
    PayoutScheduleType.WEEKLY: PayoutScheduleConfig(
        type=PayoutScheduleType.WEEKLY, fee_percent=1, fee_cap_minor=0, timeline_days=7, label="Standard",
    ),
    PayoutScheduleType.ONE_DAY: PayoutScheduleConfig(
        type=PayoutScheduleType.ONE_DAY, fee_percent=3, fee_cap_minor=500000, timeline_days=1, label="Instant",
    ),
}


def test_uncapped_fee_is_percentage_of_earnings():
    result = calculate_payout_fee(1_000_000, "weekly", configs=CUSTOM_TABLE)

    assert result.estimated_earnings == 1_000_000
    assert result.fee_amount == 10_000
    assert result.net_amount == 990_000
    assert result.fee_percent == 1
    assert result.fee_cap_minor == 0


def test_fee_is_capped():
    result = calculate_payout_fee(100_000_000, PayoutScheduleType.ONE_DAY, configs=CUSTOM_TABLE)

    assert result.fee_amount == 500_000
    assert result.net_amount == 99_500_000


def test_default_table_caps_one_day_fee():
    result = calculate_payout_fee(100_000_000, "1day")

    assert result.fee_amount == 500_000
    assert result.net_amount == 99_500_000
    assert result.fee_percent == 8


def test_unknown_schedule_type_is_rejected():
    with pytest.raises(UnknownScheduleType) as exc_info:
        calculate_payout_fee(1000, "2weeks")
    assert exc_info.value.schedule_type == "2weeks"


def test_schedule_type_missing_from_table_is_rejected():
    with pytest.raises(UnknownScheduleType):
        calculate_payout_fee(1000, "3days", configs=CUSTOM_TABLE)


@pytest.mark.parametrize("amount", [-1, 1.5, float("nan"), float("inf"), Decimal("10.5"), True, "100", None])
def test_invalid_amounts_are_rejected(amount):
    with pytest.raises(InvalidAmount):
        calculate_payout_fee(amount, "weekly")


def test_integral_float_is_accepted():
    assert calculate_payout_fee(100.0, "weekly").estimated_earnings == 100


def test_zero_earnings_yields_zero_fee():
    for schedule_type in PAYOUT_SCHEDULE_CONFIGS:
        result = calculate_payout_fee(0, schedule_type)
        assert result.fee_amount == 0
        assert result.net_amount == 0


@pytest.mark.parametrize("earnings, expected_fee", [
    (1, 0),
    (19, 0), # 0.475
    (20, 1), # 0.5 rounds up
    (60, 2), # 1.5 rounds up
    (1_000_000, 25_000),
    (16_000_000, 400_000), # exactly at the cap
    (16_000_020, 400_000),
])
def test_fee_rounding_is_half_up(earnings, expected_fee):
    assert calculate_payout_fee(earnings, "3days").fee_amount == expected_fee


def test_default_table():
    rows = {t: (c.fee_percent, c.fee_cap_minor, c.timeline_days) for t, c in PAYOUT_SCHEDULE_CONFIGS.items()}

    assert rows == {
        PayoutScheduleType.WEEKLY: (0, 0, 7),
        PayoutScheduleType.FIVE_DAYS: (1, 250000, 5),
        PayoutScheduleType.THREE_DAYS: (2.5, 400000, 3),
        PayoutScheduleType.TWO_DAYS: (4, 500000, 2),
        PayoutScheduleType.ONE_DAY: (8, 500000, 1),
    }
    assert list(PAYOUT_SCHEDULE_CONFIGS) == list(PayoutScheduleType)


def test_default_table_is_read_only():
    with pytest.raises(TypeError):
        PAYOUT_SCHEDULE_CONFIGS[PayoutScheduleType.WEEKLY] = None


def test_fee_never_exceeds_cap_and_is_monotonic():
    amounts = range(0, 60_000_000, 977_003)
    for schedule_type, config in PAYOUT_SCHEDULE_CONFIGS.items():
        fees = [calculate_payout_fee(a, schedule_type).fee_amount for a in amounts]
        if config.fee_cap_minor > 0:
            assert max(fees) <= config.fee_cap_minor
        assert fees == sorted(fees)


def test_fee_is_linear_below_cap():
    for schedule_type, config in PAYOUT_SCHEDULE_CONFIGS.items():
        for earnings in (0, 1, 7, 20, 999, 12_345, 250_001, 9_999_999):
            exact = Fraction(earnings) * Fraction(str(config.fee_percent)) / 100
            if config.fee_cap_minor and exact >= config.fee_cap_minor:
                continue
            expected = math.floor(exact + Fraction(1, 2))
            assert calculate_payout_fee(earnings, schedule_type).fee_amount == expected


def test_fee_and_net_add_up_to_earnings():
    for schedule_type in PAYOUT_SCHEDULE_CONFIGS:
        for earnings in (0, 3, 41, 10_001, 123_456_789):
            result = calculate_payout_fee(earnings, schedule_type)
            assert result.fee_amount + result.net_amount == earnings
            assert 0 <= result.fee_amount <= earnings


def test_parse_schedule_type():
    assert parse_schedule_type("5days") is PayoutScheduleType.FIVE_DAYS
    assert parse_schedule_type(PayoutScheduleType.ONE_DAY) is PayoutScheduleType.ONE_DAY
    with pytest.raises(UnknownScheduleType):
        parse_schedule_type("daily")


def test_get_payout_schedule_config():
    config = get_payout_schedule_config("2days")

    assert config.label == "Fast"
    assert config.fee_percent == 4


def test_payout_schedule_options():
    options = get_payout_schedule_options()

    assert [o.type for o in options] == list(PayoutScheduleType)
    by_type = {o.type: o for o in options}
    assert by_type[PayoutScheduleType.WEEKLY].fee_cap_display == "Free"
    assert by_type[PayoutScheduleType.WEEKLY].timeline == "7 business days"
    assert by_type[PayoutScheduleType.FIVE_DAYS].fee_cap_display == "₦2,500 max"
    assert by_type[PayoutScheduleType.ONE_DAY].timeline == "Next business day"
    assert by_type[PayoutScheduleType.ONE_DAY].fee_cap_display == "₦5,000 max"
    assert [o.type for o in options if o.recommended] == [PayoutScheduleType.THREE_DAYS]


def test_payout_schedule_options_for_custom_table():
    options = get_payout_schedule_options(configs=CUSTOM_TABLE, currency_code="USD")

    assert [o.type for o in options] == [PayoutScheduleType.WEEKLY, PayoutScheduleType.ONE_DAY]
    assert options[0].fee_cap_display == "No cap"
    assert options[1].fee_cap_display == "$5,000.00 max"
    assert not any(o.recommended for o in options)
