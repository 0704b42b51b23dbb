"""Seed the database with a demo center, staff user, member and equipment."""

import asyncio
from decimal import Decimal

from chc_rental.db.engine import async_session_factory, create_all
from chc_rental.db import crud

DEMO_CENTER = "Demo CHC Center"

DEMO_EQUIPMENT = [
    ("Tractor with Rotavator", Decimal("850"), "45 HP tractor with 7 ft rotavator"),
    ("Seeder", Decimal("300"), "9-row seed drill"),
    ("Power Tiller", Decimal("400"), "Walk-behind tiller for small plots"),
    ("Sprayer", Decimal("120"), "Battery knapsack sprayer, 16 L"),
]


async def seed():
    await create_all()

    async with async_session_factory() as db:
        existing = await crud.list_centers(db)
        if any(c.name == DEMO_CENTER for c in existing):
            print("Demo center already exists, skipping seed.")
            return

        center = await crud.create_center(db, DEMO_CENTER)
        print(f"Created center: {center.name} (id: {center.id})")

        for name, rent, description in DEMO_EQUIPMENT:
            eq = await crud.create_equipment(db, center.id, name, rent, description=description)
            print(f"  {eq.name}: {eq.rent}/hr")

        staff = await crud.create_user(db, center.id, "CHC Staff", "+919000000001", role="staff")
        member = await crud.create_user(db, center.id, "Demo Farmer", "+919000000002", address="Village Road 1")
        print(f"Staff: {staff.phone_number}  Member: {member.phone_number}")

    print("\nSeed complete. Start the server with: uvicorn chc_rental.main:app --reload")


if __name__ == "__main__":
    asyncio.run(seed())
