"""
Database Seeder Script

Generates fake deals for testing purposes using Faker.
Deals go through the repository, so totals and quote numbers are computed
exactly as they are for API-created deals.

Usage:
    python seed_data.py [--deals 200]

Requirements:
    pip install faker
"""

import argparse
import random
from datetime import datetime, timezone, timedelta
from decimal import Decimal

from faker import Faker
from sqlmodel import Session

from core.config import settings
from db.repository import SqlDealRepository
from db.session import engine
from models.deal import Deal, LineItem
from models.enums import DealStatus, DiscountType

fake = Faker()

# Statuses reachable without a real signature
ALLOWED_STATUSES = [
    DealStatus.DRAFT,
    DealStatus.SENT,
    DealStatus.VIEWED,
    DealStatus.REJECTED,
    DealStatus.EXPIRED,
]
CURRENCIES = ["USD", "EUR", "GBP"]

# Sample service descriptions for deals
SERVICE_DESCRIPTIONS = [
    "Website design",
    "Mobile application development",
    "Monthly maintenance",
    "Annual hosting",
    "Logo and brand guidelines",
    "E-commerce redesign",
    "API integration",
    "User training",
    "SEO audit",
    "Content writing",
    "Social media management",
    "Paid search campaign",
    "Custom feature development",
    "Data migration",
    "Priority support",
    "Digital strategy consulting",
    "UX/UI design",
    "CMS development",
    "Server configuration",
    "Backup and security",
]


def build_deal() -> Deal:
    discount_type = random.choice([DiscountType.PERCENTAGE, DiscountType.FIXED])
    if discount_type == DiscountType.PERCENTAGE:
        discount_value = Decimal(random.choice([0, 0, 5, 10, 15]))
    else:
        discount_value = Decimal(random.choice([0, 100, 250, 500]))

    deal = Deal(
        name=f"{fake.company()} - {fake.bs().title()}",
        currency=random.choice(CURRENCIES),
        status=random.choice(ALLOWED_STATUSES),
        discount_type=discount_type,
        discount_value=discount_value,
        tax_rate=Decimal(random.choice([0, 5, 8.25, 20])).quantize(Decimal("0.01")),
        notes=fake.text(max_nb_chars=200) if random.random() > 0.7 else None,
        expiry_date=datetime.now(timezone.utc) + timedelta(days=random.randint(7, 60)),
        created_at=fake.date_time_between(start_date='-1y', end_date='now', tzinfo=timezone.utc),
    )
    deal.line_items = [
        LineItem(
            description=random.choice(SERVICE_DESCRIPTIONS),
            quantity=Decimal(random.randint(1, 10)),
            unit_price=Decimal(random.randint(50, 500) * 10),
            discount_percent=Decimal(random.choice([0, 0, 0, 5, 10])),
            tax_percent=Decimal("0"),
            order=index,
        )
        for index in range(random.randint(1, 5))
    ]
    return deal


def create_deals(session: Session, count: int = 200) -> list[Deal]:
    print(f"Creating {count} deals...")
    repository = SqlDealRepository(session, max_attempts=settings.quote_number_max_attempts)
    deals = []

    for i in range(count):
        deals.append(repository.save_deal(build_deal()))
        if (i + 1) % 50 == 0:
            print(f"  Processed {i + 1}/{count} deals...")

    print(f"✓ Created {count} deals")
    return deals


def main():
    parser = argparse.ArgumentParser(description='Seed database with fake deals')
    parser.add_argument('--deals', type=int, default=200, help='Number of deals to create (default: 200)')

    args = parser.parse_args()

    print(f"\n🌱 Starting database seeding...")
    print(f"   Deals: {args.deals}\n")

    with Session(engine) as session:
        deals = create_deals(session, args.deals)

        status_counts = {}
        for deal in deals:
            status_counts[deal.status.value] = status_counts.get(deal.status.value, 0) + 1

        print(f"\n📊 Summary:")
        print(f"   Total deals: {len(deals)}")
        print(f"   Status breakdown:")
        for status, count in status_counts.items():
            print(f"     - {status}: {count}")

    print(f"\n✅ Seeding complete!\n")


if __name__ == "__main__":
    main()
