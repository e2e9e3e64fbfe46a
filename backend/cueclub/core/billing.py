"""
账单计算

- 台费 = 计时秒数 / 3600 * 每小时费用
- 商品费 = Σ 单价 * 数量
- 应收金额：会员支付只收商品费（台费由会员时长抵扣），其它方式收台费 + 商品费
- 只在应收金额这一步向下取整，中间金额保留完整精度
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from typing import Iterable, Optional

from cueclub.core.enums import PaymentMethod

SECONDS_PER_HOUR = Decimal(3600)
HOURS_PRECISION = Decimal("0.0001")


@dataclass(frozen=True)
class Bill:
    elapsed_seconds: int
    rate: Decimal
    table_cost: Decimal
    items_cost: Decimal
    total_payable: int
    payment_method: Optional[PaymentMethod]

    @property
    def played_hours(self) -> Decimal:
        return played_hours(self.elapsed_seconds)


def floor_amount(amount: Decimal) -> int:
    """向下取整到最小货币单位"""
    return int(amount.to_integral_value(rounding=ROUND_FLOOR))


def round_hours(hours: Decimal) -> Decimal:
    """时长保留4位小数，消除浮点误差"""
    return Decimal(hours).quantize(HOURS_PRECISION, rounding=ROUND_HALF_UP)


def played_hours(elapsed_seconds: int) -> Decimal:
    return round_hours(Decimal(elapsed_seconds) / SECONDS_PER_HOUR)


def table_cost(elapsed_seconds: int, rate) -> Decimal:
    return Decimal(elapsed_seconds) / SECONDS_PER_HOUR * Decimal(str(rate))


def items_cost(lines: Iterable) -> Decimal:
    return sum((line.price * line.quantity for line in lines), Decimal("0"))


def compute_bill(elapsed_seconds: int, rate, lines: Iterable,
                 payment_method: Optional[PaymentMethod] = None) -> Bill:
    """计算账单；未选择支付方式时按非会员方式计算应收金额"""
    table = table_cost(elapsed_seconds, rate)
    items = items_cost(lines)
    if payment_method == PaymentMethod.MEMBERSHIP:
        total = floor_amount(items)
    else:
        total = floor_amount(table + items)
    return Bill(
        elapsed_seconds=elapsed_seconds,
        rate=Decimal(str(rate)),
        table_cost=table,
        items_cost=items,
        total_payable=total,
        payment_method=payment_method,
    )


def split_pay_matches(total_payable: int, cash_amount: Decimal, upi_amount: Decimal) -> bool:
    """组合支付：现金 + UPI 取整后必须与应收金额完全一致"""
    return floor_amount(Decimal(str(cash_amount)) + Decimal(str(upi_amount))) == total_payable
