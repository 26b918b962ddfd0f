from __future__ import annotations

from dataclasses import dataclass

# Credits charged per AI operation.
CREDIT_COSTS: dict[str, int] = {
    "market_research": 5,
    "brand_identity": 10,
    "website_generation": 15,
    "full_business": 25,
    "business_plan": 5,
    "lead_generation": 5,
    "outreach": 5,
    "ads": 10,
    "website_edit": 5,
    "identity_edit": 2,
    "pricing_edit": 2,
}


@dataclass(frozen=True)
class CreditPackage:
    id: str
    name: str
    credits: int
    price_usd: int

    @property
    def price_cents(self) -> int:
        return self.price_usd * 100


CREDIT_PACKAGES: dict[str, CreditPackage] = {
    package.id: package
    for package in (
        CreditPackage(id="starter", name="Starter", credits=100, price_usd=10),
        CreditPackage(id="growth", name="Growth", credits=500, price_usd=40),
        CreditPackage(id="pro", name="Pro", credits=1500, price_usd=100),
    )
}


def get_credit_package(package_id: str | None) -> CreditPackage | None:
    if not package_id:
        return None
    return CREDIT_PACKAGES.get(package_id)
