import os
from sqlalchemy import select
from fundtrack.db.session import SessionLocal
from fundtrack.models.user import User
from fundtrack.core.security import hash_password

def main():
    username = os.environ.get("SEED_ADMIN_USER", "admin")
    password = os.environ.get("SEED_ADMIN_PASS", "admin123")

    db = SessionLocal()
    try:
        existing = db.execute(select(User)).scalars().first()
        if existing:
            return
        db.add(User(username=username, password_hash=hash_password(password)))
        db.commit()
    finally:
        db.close()

if __name__ == "__main__":
    main()
