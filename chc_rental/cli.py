"""CLI for CHC Rental: bootstrap centers, staff accounts and catalog items."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from decimal import Decimal, InvalidOperation


async def cmd_create_center(args):
    """Create a new center, optionally with a staff user."""
    from chc_rental.db.engine import async_session_factory, create_all
    from chc_rental.db import crud
    from chc_rental.services.auth import normalize_phone

    await create_all()
    async with async_session_factory() as db:
        center = await crud.create_center(db, args.name)
        print(f"Center created: {center.name} (id={center.id})")
        if args.staff_phone:
            phone = normalize_phone(args.staff_phone)
            staff = await crud.create_user(
                db, center.id, args.staff_name or "Staff", phone, role="staff",
            )
            print(f"Staff user: {staff.phone_number} (id={staff.id})")


async def cmd_add_staff(args):
    from chc_rental.db.engine import async_session_factory, create_all
    from chc_rental.db import crud
    from chc_rental.services.auth import normalize_phone

    await create_all()
    async with async_session_factory() as db:
        center = await crud.get_center(db, args.center_id)
        if not center:
            print(f"Center {args.center_id} not found")
            sys.exit(1)
        staff = await crud.create_user(db, center.id, args.name, normalize_phone(args.phone), role="staff")
    print(f"Staff user: {staff.phone_number} (id={staff.id}) at {center.name}")


async def cmd_add_equipment(args):
    from chc_rental.db.engine import async_session_factory, create_all
    from chc_rental.db import crud

    try:
        rent = Decimal(args.rent)
    except InvalidOperation:
        print(f"Invalid rent: {args.rent}")
        sys.exit(1)
    if rent < 0:
        print("Rent must not be negative")
        sys.exit(1)

    await create_all()
    async with async_session_factory() as db:
        center = await crud.get_center(db, args.center_id)
        if not center:
            print(f"Center {args.center_id} not found")
            sys.exit(1)
        eq = await crud.create_equipment(
            db, center.id, args.name, rent,
            description=args.description, location_details=args.location,
        )
    print(f"Equipment added: {eq.name} @ {eq.rent}/hr (id={eq.id})")


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    parser = argparse.ArgumentParser(description="CHC Rental CLI")
    subparsers = parser.add_subparsers(dest="command")

    cc = subparsers.add_parser("create-center", help="Create a new service center")
    cc.add_argument("--name", required=True, help="Center name")
    cc.add_argument("--staff-phone", default="", help="Phone number of the first staff user")
    cc.add_argument("--staff-name", default="", help="Staff display name")

    st = subparsers.add_parser("add-staff", help="Add a staff user to a center")
    st.add_argument("--center-id", required=True)
    st.add_argument("--phone", required=True)
    st.add_argument("--name", default="Staff")

    ae = subparsers.add_parser("add-equipment", help="Add an equipment item to a center catalog")
    ae.add_argument("--center-id", required=True)
    ae.add_argument("--name", required=True)
    ae.add_argument("--rent", required=True, help="Hourly rate")
    ae.add_argument("--description", default="")
    ae.add_argument("--location", default="")

    args = parser.parse_args()

    if args.command == "create-center":
        asyncio.run(cmd_create_center(args))
    elif args.command == "add-staff":
        asyncio.run(cmd_add_staff(args))
    elif args.command == "add-equipment":
        asyncio.run(cmd_add_equipment(args))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
