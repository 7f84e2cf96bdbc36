"""
One-off script to seed the product catalog and an admin account.
Run from backend/ directory:
    ADMIN_EMAIL=... ADMIN_PASSWORD=... python seed_catalog.py
"""
import sys, os
from decimal import Decimal

import bcrypt

sys.path.insert(0, os.path.dirname(__file__))

from rxgate.main import create_app
from rxgate.database import db
from rxgate.models.models import Product, User, ROLE_ADMIN

CATALOG = [
    ("Paracetamol 500mg", "Fever and mild pain relief, strip of 10 tablets", "25.00", False),
    ("Emergency Care Kit", "Complete emergency care kit with essential medical supplies", "49.99", False),
    ("Vitamin C 1000mg", "Immunity support, 30 effervescent tablets", "12.50", False),
    ("Amoxicillin 500mg", "Broad-spectrum antibiotic, 15 capsules", "89.00", True),
    ("Metformin 500mg", "Type 2 diabetes management, 30 tablets", "40.00", True),
    ("Atorvastatin 10mg", "Cholesterol control, 30 tablets", "110.00", True),
]

app = create_app()

with app.app_context():
    added = 0
    for name, description, price, gated in CATALOG:
        if Product.query.filter_by(name=name).first():
            print(f"{name}: already in catalog, skipping.")
            continue
        db.session.add(Product(name=name, description=description, price=Decimal(price), requires_prescription=gated))
        added += 1
        print(f"{name}: added{' (prescription required)' if gated else ''}.")

    email = os.environ.get("ADMIN_EMAIL", "").strip().lower()
    password = os.environ.get("ADMIN_PASSWORD")
    if email and password and not User.query.filter_by(email=email).first():
        db.session.add(User(
            email=email,
            password_hash=bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode(),
            full_name="Store Administrator",
            role=ROLE_ADMIN,
        ))
        print(f"Admin account {email} created.")

    db.session.commit()
    print(f"\nDone! {added} products added, {Product.query.count()} in catalog.")
