#!/usr/bin/env python3
# scripts/create_user.py
"""建立使用者（本服務沒有註冊頁面，帳號由維運端建立）。"""
import argparse
import asyncio
from getpass import getpass

from sessapi.db.session import AsyncSessionLocal, init_models
from sessapi.schemas.forms import normalize_email, valid_password
from sessapi.services.credentials import create_user


async def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("email")
    parser.add_argument("--init-db", action="store_true", help="create tables first")
    args = parser.parse_args()

    email = normalize_email(args.email)
    if email is None:
        raise SystemExit(f"Invalid email: {args.email}")

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")
    if valid_password(pw1) is None:
        raise SystemExit("Password does not satisfy the configured policy")

    if args.init_db:
        await init_models()

    async with AsyncSessionLocal() as db:
        user = await create_user(db, email, pw1)
    if user is None:
        raise SystemExit(f"Email already exists: {email}")
    print({"id": user.id, "email": user.email})
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
