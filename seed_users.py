# seed_users.py
from werkzeug.security import generate_password_hash

from runclub.extensions import db
from runclub.models import User

SEED_PASSWORD = "password123"

def seed_runners(num_users=200):
    """
    Ensure runner1..runnerN@example.com exist (the load test logs in as these).
    Existing runners are left alone. Returns how many were created.
    """
    emails = [f"runner{n}@example.com" for n in range(1, num_users + 1)]
    existing = {
        email
        for (email,) in db.session.query(User.email).filter(User.email.in_(emails)).all()
    }
    print(f"Existing runners: {len(existing)}")

    # One hash for everyone; hashing is the slow part
    password_hash = generate_password_hash(SEED_PASSWORD)

    created = 0
    for n, email in enumerate(emails, start=1):
        if email in existing:
            continue
        db.session.add(
            User(
                email=email,
                password_hash=password_hash,
                gender="female" if n % 2 else "male",
            )
        )
        created += 1

    db.session.commit()
    print(f"Created {created} runners (password: {SEED_PASSWORD}).")
    return created

def main():
    from runclub.run import api

    with api.app_context():
        seed_runners()

if __name__ == "__main__":
    main()
