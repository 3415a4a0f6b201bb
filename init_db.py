from skillrecord import create_app, db
from skillrecord.commands import seed_courses

app = create_app()

with app.app_context():
    # Drop all tables
    db.drop_all()

    # Create all tables
    db.create_all()

    added = seed_courses()
    print(f"Database initialized successfully! Seeded {added} courses.")
