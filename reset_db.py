from decimal import Decimal

from sqlmodel import SQLModel, Session
from db.repository import SqlDealRepository
from db.session import engine
from models.deal import Deal, LineItem
from models.enums import DiscountType

from core.config import settings


def reset_db():
    print("🗑️  Dropping all tables...")
    SQLModel.metadata.drop_all(engine)

    print("✨ Creating all tables...")
    SQLModel.metadata.create_all(engine)

    print("🌱 Seeding sample deal...")
    with Session(engine) as session:
        repository = SqlDealRepository(session, max_attempts=settings.quote_number_max_attempts)
        deal = Deal(
            name="Website Redesign",
            currency="USD",
            discount_type=DiscountType.PERCENTAGE,
            discount_value=Decimal("10"),
            tax_rate=Decimal("5"),
            terms="Payment due within 30 days of acceptance.",
        )
        deal.line_items = [
            LineItem(description="Design", quantity=Decimal("1"), unit_price=Decimal("5000.00"), order=0),
            LineItem(description="Development", quantity=Decimal("1"), unit_price=Decimal("3000.00"), order=1),
            LineItem(description="Hosting setup", quantity=Decimal("1"), unit_price=Decimal("2000.00"), order=2),
        ]
        deal = repository.save_deal(deal)

        print(f"✅ Database reset complete. Deal {deal.quote_number} total: {deal.currency} {deal.total_amount}")


if __name__ == "__main__":
    reset_db()
