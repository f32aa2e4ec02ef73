# healthconnect/seed.py
# Seeds the hospital directory and the payment bank accounts on startup.
import logging
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError

from .database import SessionLocal
from . import models

logger = logging.getLogger(__name__)

SAMPLE_HOSPITALS = [
    dict(name="City General Hospital", address="123 Main St", city="New York", state="NY", zip_code="10001",
         phone="(555) 123-4567", latitude=Decimal("40.7128"), longitude=Decimal("-74.0060"), hospital_type="General",
         emergency_services=True, rating=Decimal("4.2"), bed_capacity=400, website="https://citygeneral.com"),
    dict(name="St. Mary Medical Center", address="456 Oak Ave", city="Los Angeles", state="CA", zip_code="90210",
         phone="(555) 234-5678", latitude=Decimal("34.0522"), longitude=Decimal("-118.2437"), hospital_type="General",
         emergency_services=True, rating=Decimal("4.5"), bed_capacity=350, website="https://stmarymedical.com"),
    dict(name="Metropolitan Emergency Hospital", address="789 Pine St", city="Chicago", state="IL", zip_code="60601",
         phone="(555) 345-6789", latitude=Decimal("41.8781"), longitude=Decimal("-87.6298"), hospital_type="Emergency",
         emergency_services=True, rating=Decimal("4.0"), bed_capacity=200, website="https://metroemergency.com"),
    dict(name="Children's Healthcare Center", address="321 Elm Dr", city="Houston", state="TX", zip_code="77001",
         phone="(555) 456-7890", latitude=Decimal("29.7604"), longitude=Decimal("-95.3698"), hospital_type="Pediatric",
         emergency_services=True, rating=Decimal("4.8"), bed_capacity=150, website="https://childrenshealth.com"),
    dict(name="University Medical Hospital", address="654 University Blvd", city="Phoenix", state="AZ", zip_code="85001",
         phone="(555) 567-8901", latitude=Decimal("33.4484"), longitude=Decimal("-112.0740"), hospital_type="Teaching",
         emergency_services=True, rating=Decimal("4.3"), bed_capacity=500, website="https://univmedical.com"),
    dict(name="Regional Heart Institute", address="987 Health Way", city="Philadelphia", state="PA", zip_code="19101",
         phone="(555) 678-9012", latitude=Decimal("39.9526"), longitude=Decimal("-75.1652"), hospital_type="Cardiac",
         emergency_services=False, rating=Decimal("4.7"), bed_capacity=100, website="https://heartinstitute.com"),
    dict(name="North Shore Community Hospital", address="147 Shore Dr", city="Miami", state="FL", zip_code="33101",
         phone="(555) 789-0123", latitude=Decimal("25.7617"), longitude=Decimal("-80.1918"), hospital_type="Community",
         emergency_services=True, rating=Decimal("4.1"), bed_capacity=250, website="https://northshorecommunity.com"),
    dict(name="Mountain View Medical Center", address="258 Mountain Rd", city="Denver", state="CO", zip_code="80201",
         phone="(555) 890-1234", latitude=Decimal("39.7392"), longitude=Decimal("-104.9903"), hospital_type="General",
         emergency_services=True, rating=Decimal("4.4"), bed_capacity=300, website="https://mountainviewmedical.com"),
]

SAMPLE_BANK_ACCOUNTS = [
    dict(bank_name="Wells Fargo", account_name="HealthConnect Medical Services", account_number="1234567890", routing_number="121000248"),
    dict(bank_name="Chase Bank", account_name="HealthConnect Medical Services", account_number="9876543210", routing_number="021000021"),
    dict(bank_name="Bank of America", account_name="HealthConnect Medical Services", account_number="5555666677", routing_number="026009593"),
    dict(bank_name="Citibank", account_name="HealthConnect Medical Services", account_number="1111222233", routing_number="021000089"),
]


def seed_sample_data(db) -> dict:
    """Insert the sample directory and bank accounts into empty tables. Returns rows added per table."""
    added = {"hospitals": 0, "bank_accounts": 0}
    if db.query(models.Hospital.id).first() is None:
        db.add_all(models.Hospital(**row) for row in SAMPLE_HOSPITALS)
        added["hospitals"] = len(SAMPLE_HOSPITALS)
    if db.query(models.BankAccount.id).first() is None:
        db.add_all(models.BankAccount(**row) for row in SAMPLE_BANK_ACCOUNTS)
        added["bank_accounts"] = len(SAMPLE_BANK_ACCOUNTS)
    db.commit()
    return added


def create_initial_data():
    """Startup hook: seeds reference data if the tables are empty."""
    db = SessionLocal()
    try:
        added = seed_sample_data(db)
        if any(added.values()):
            logger.info(f"Seeded initial data: {added}")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"CRITICAL: Error during initial data creation: {e}")
    finally:
        db.close()
