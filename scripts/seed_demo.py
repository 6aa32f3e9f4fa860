"""Seed the database with a demo customer, an admin and a pending booking.

Run from the project root:
python scripts/seed_demo.py
"""
import uuid
from datetime import date, timedelta

from cinepay.auth import create_user_token
from cinepay.database import models
from cinepay.database.database import Base, SessionLocal, engine
from cinepay.utils import hash_password

DEMO_EMAIL = "demo.customer@example.com"
ADMIN_EMAIL = "demo.admin@example.com"
DEMO_PASSWORD = "DemoPass123!"


def seed():
    # ensure tables exist
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        user = db.query(models.User).filter(models.User.email == DEMO_EMAIL).first()
        if user is None:
            user = models.User(name="Demo Customer", email=DEMO_EMAIL, password=hash_password(DEMO_PASSWORD), role="user")
            db.add(user)
        if db.query(models.User).filter(models.User.email == ADMIN_EMAIL).first() is None:
            db.add(models.User(name="Demo Admin", email=ADMIN_EMAIL, password=hash_password(DEMO_PASSWORD), role="admin"))

        movie = models.Movie(title="The Great Adventure", language="English", runtime=120)
        theatre = models.Theatre(name="CinePay Screens", city="Bengaluru")
        db.add_all([movie, theatre])
        db.flush()

        booking = models.Booking(
            booking_number=f"BK{uuid.uuid4().hex[:10].upper()}",
            user_id=user.id,
            movie_id=movie.id,
            theatre_id=theatre.id,
            show_date=date.today() + timedelta(days=1),
            show_time="18:30",
            total_amount=499.5,
            tickets=[
                {"row": "A", "number": 5, "type": "premium", "price": 249.75},
                {"row": "A", "number": 6, "type": "premium", "price": 249.75},
            ],
        )
        db.add(booking)
        db.commit()

        print(f"Seeded pending booking {booking.id} ({booking.booking_number})")
        print(f"Customer token: {create_user_token(user)}")
    finally:
        db.close()


if __name__ == '__main__':
    seed()
