"""
Create test user
"""
from app.infrastructure.db.session import session_scope
from app.infrastructure.db.models import User
from app.auth import hash_password
from app.application.profile import UpdateProfileUseCase

EMAIL = "test@example.com"
PASSWORD = "password123"

with session_scope() as db:
    existing = db.query(User).filter(User.email == EMAIL).first()
    if existing:
        print(f"User already exists: {EMAIL} (ID: {existing.id})")
    else:
        user = User(email=EMAIL, password_hash=hash_password(PASSWORD))
        db.add(user)
        db.commit()
        UpdateProfileUseCase(db).execute(
            user.id,
            full_name="Test Founder",
            business_type="fractional_executive",
            service_types=["workshop", "advisory"],
            onboarding_completed=True,
        )
        print("Created user:")
        print(f"  Email: {EMAIL}")
        print(f"  Password: {PASSWORD}")
