# Overview: Starter data for a new store: delivery zones and a sample menu.

from __future__ import annotations

from .extensions import db
from .models import Product
from .repositories import ProductRepository
from .services import delivery_service


DEFAULT_DELIVERY_ZONES = [
    ("Anilao", 3_000),
    ("Bagalangit", 2_500),
    ("Mainit", 3_500),
    ("Balon-Anito", 4_000),
    ("Matabungkay", 4_500),
    ("Nag-Iba", 5_000),
    ("Laurel", 5_500),
    ("Sampaguita", 3_000),
]

SAMPLE_MENU = [
    {
        "name": "Pandesal Classic",
        "category": "Breads",
        "price_cents": 800,
        "stock": 120,
        "description": "Soft, warm pandesal baked fresh every morning. Perfect with coffee or hot chocolate.",
        "image": "/assets/images/pandesal.jpg",
    },
    {
        "name": "Ensaymada Special",
        "category": "Breads",
        "price_cents": 2_500,
        "stock": 45,
        "description": "Fluffy ensaymada topped with butter, sugar, and grated cheese. A Filipino favorite!",
        "image": "/assets/images/ensaymada.jpg",
    },
    {
        "name": "Spanish Bread",
        "category": "Breads",
        "price_cents": 1_200,
        "stock": 80,
        "description": "Soft bread rolls filled with sweet butter and breadcrumb mixture.",
        "image": "/assets/images/spanish-bread.jpg",
    },
    {
        "name": "Pan de Coco",
        "category": "Breads",
        "price_cents": 1_500,
        "stock": 60,
        "description": "Soft bread filled with sweet coconut filling. A tropical delight!",
        "image": "/assets/images/pan-de-coco.jpg",
    },
    {
        "name": "Ube Cake",
        "category": "Cakes",
        "price_cents": 45_000,
        "stock": 8,
        "description": "Moist purple yam cake with creamy ube frosting. Perfect for celebrations!",
        "image": "/assets/images/ube-cake.jpg",
        "options": {"type": "customization", "choices": ["Add celebrant name", "Add special message"]},
    },
]


def seed_delivery_zones() -> int:
    """Insert the default zones that are missing. Returns how many were added."""
    existing = {z.barangay for z in delivery_service.list_zones()}
    added = 0
    for barangay, fee in DEFAULT_DELIVERY_ZONES:
        if barangay in existing:
            continue
        delivery_service.upsert_zone(barangay, fee)
        added += 1
    return added


def seed_sample_menu() -> int:
    """Insert sample products whose names are not on the menu yet."""
    products = ProductRepository()
    existing = {p.name for p in products.list(include_unavailable=True)}
    added = 0
    for row in SAMPLE_MENU:
        if row["name"] in existing:
            continue
        products.add(Product(available=True, **row))
        added += 1
    db.session.commit()
    return added
