"""Bootstrap a fresh database: admin account, default channels, sample catalog."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from workshop.db import crud
from workshop.models import User
from workshop.services.auth import hash_password

DEFAULT_CHANNELS = [
    ("General", "general", "General discussions"),
    ("Tech", "tech", "Technical discussions"),
    ("Sales", "sales", "Sales team discussions"),
]

SAMPLE_SERVICES = [
    ("Comprehensive Hybrid System Inspection", "فحص شامل للنظام الهجين", "250.00", 90),
    ("Hybrid Battery Maintenance", "صيانة بطارية هجينة", "350.00", 120),
    ("Hybrid Battery Replacement", "استبدال بطارية هجينة", "2500.00", 180),
    ("Electric Motor Service", "صيانة المحرك الكهربائي", "450.00", 150),
]

SAMPLE_PARTS = [
    ("Hybrid Battery Cell", "خلية بطارية هجينة", "HB-CELL-01", "120.00"),
    ("Inverter Coolant Pump", "مضخة تبريد العاكس", "INV-PUMP-02", "310.00"),
    ("Brake Pad Set", "طقم فحمات فرامل", "BRK-PAD-03", "85.00"),
]


async def create_user(
    db: AsyncSession,
    username: str,
    email: str,
    password: str,
    role: str = "customer",
    full_name: str = "",
    preferred_language: str = "en",
    specialization: str | None = None,
) -> User:
    return await crud.create_user(
        db,
        full_name=full_name or username,
        email=email,
        username=username,
        password_hash=hash_password(password),
        role=role,
        preferred_language=preferred_language,
        specialization=specialization,
    )


async def seed_defaults(db: AsyncSession, admin_password: str) -> list[str]:
    """Idempotent seed. Returns a line per thing created."""
    created = []

    if not await crud.get_user_by_username(db, "admin"):
        await create_user(
            db, "admin", "admin@workshop.local", admin_password,
            role="admin", full_name="System Administrator",
        )
        created.append("admin user")

    if not await crud.list_channels(db, active_only=False):
        for name, type_, description in DEFAULT_CHANNELS:
            await crud.create_channel(db, name, type_, description)
        created.append(f"{len(DEFAULT_CHANNELS)} chat channels")

    if not await crud.list_services(db):
        for name_en, name_ar, price, minutes in SAMPLE_SERVICES:
            await crud.create_service(
                db, name_en, name_ar, Decimal(price), expected_duration_minutes=minutes,
            )
        created.append(f"{len(SAMPLE_SERVICES)} services")

    if not await crud.list_parts(db):
        for name_en, name_ar, code, price in SAMPLE_PARTS:
            await crud.create_part(db, name_en, name_ar, Decimal(price), part_code=code)
        created.append(f"{len(SAMPLE_PARTS)} spare parts")

    return created
