"""Static reference data: the sample portfolio and the region list."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from .data_models import Loan

# Polish voivodeships, keyed by the ids stored in user profiles.
PROVINCES: Dict[int, str] = {
    1: "Dolnośląskie",
    2: "Kujawsko-pomorskie",
    3: "Lubelskie",
    4: "Lubuskie",
    5: "Łódzkie",
    6: "Małopolskie",
    7: "Mazowieckie",
    8: "Opolskie",
    9: "Podkarpackie",
    10: "Podlaskie",
    11: "Pomorskie",
    12: "Śląskie",
    13: "Świętokrzyskie",
    14: "Warmińsko-mazurskie",
    15: "Wielkopolskie",
    16: "Zachodniopomorskie",
}


def province_name(province_id: Optional[int]) -> str:
    return PROVINCES.get(province_id or 0, "")


def demo_loans() -> List[Loan]:
    """Sample loans shown to visitors who have not added any of their own."""
    return [
        Loan(
            id="demo-1",
            name="Home Mortgage",
            loan_type="mortgage",
            principal=Decimal("250000"),
            annual_rate=Decimal("5"),
            term=360,
            monthly_installment=Decimal("1342.05"),
            first_payment_date=date(2023, 1, 1),
        ),
        Loan(
            id="demo-2",
            name="Car Loan",
            loan_type="cash",
            principal=Decimal("35000"),
            annual_rate=Decimal("5"),
            term=60,
            monthly_installment=Decimal("660.75"),
            first_payment_date=date(2023, 3, 15),
        ),
    ]
