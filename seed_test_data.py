"""
Seed test data for test@example.com (account_id=1): goals, two weeks of
actuals, a pipeline, revenue entries and a small talent network.
Run:  python seed_test_data.py
"""
from datetime import date, datetime, timedelta, timezone

# ── bootstrap ────────────────────────────────────────────────────
from app.infrastructure.db.session import session_scope
from app.infrastructure.db.models import User, MonthlyGoal

from app.application.tracking import SaveDailyActualsUseCase, UpsertMonthlyGoalsUseCase
from app.application.opportunities import CreateOpportunityUseCase
from app.application.revenue import CreateRevenueEntryUseCase
from app.application.contacts import (
    CreateContactUseCase, CreateReferralUseCase, CreateSkillUseCase,
)
from app.application.insights import InsightGenerationService
from app.domain.progress import month_key

ACCOUNT_ID = 1


def seed(db) -> None:
    if not db.get(User, ACCOUNT_ID):
        print("User id=1 not found, run create_test_user.py first")
        return

    today = date.today()
    month = month_key(today)

    if db.query(MonthlyGoal).filter_by(account_id=ACCOUNT_ID, month=month).count():
        print(f"Goals for {month} already exist, nothing to do")
        return

    # ═══════════════════════════════════════════════════════════════
    # Goals and actuals
    # ═══════════════════════════════════════════════════════════════
    print(f"Creating goals for {month}...")
    UpsertMonthlyGoalsUseCase(db).execute(
        ACCOUNT_ID, month,
        revenue_forecast=40000, cost_budget=6000,
        site_visits_target=3000, social_followers_target=200,
        pr_target=4, workshops_target=3, advisory_target=2, lectures_target=2,
    )

    print("Logging daily actuals...")
    save = SaveDailyActualsUseCase(db)
    first_day = max(today - timedelta(days=13), today.replace(day=1))
    day = first_day
    while day <= today:
        n = (day - first_day).days
        save.execute(
            ACCOUNT_ID, day,
            {
                "gross_revenue": 800 + 150 * (n % 4),
                "total_costs": 120 + 10 * (n % 3),
                "site_visits": 90 + 5 * n,
                "social_followers": 5 + n % 2,
                "pr_articles": 1 if n % 6 == 0 else 0,
                "workshop_customers": 1 if n % 7 == 3 else 0,
                "advisory_customers": 1 if n == 5 else 0,
                "lectures": 1 if n % 9 == 2 else 0,
            },
            notes="Seeded" if n == 0 else None,
            today=day,
        )
        day += timedelta(days=1)

    # ═══════════════════════════════════════════════════════════════
    # Pipeline and revenue
    # ═══════════════════════════════════════════════════════════════
    print("Creating opportunities...")
    opp_uc = CreateOpportunityUseCase(db)
    opp_uc.execute(ACCOUNT_ID, "Leadership offsite", "workshop", month, stage="won", probability=100, estimated_value=6000, company="Northwind")
    opp_uc.execute(ACCOUNT_ID, "Pricing strategy retainer", "advisory", month, stage="negotiation", probability=70, estimated_value=9000, company="Contoso")
    opp_uc.execute(ACCOUNT_ID, "University guest lecture", "lecture", month, stage="proposal", probability=50, estimated_value=1500)
    opp_uc.execute(ACCOUNT_ID, "Podcast interview", "pr", month, stage="lead", probability=20)
    for i in range(6):
        opp_uc.execute(ACCOUNT_ID, f"Inbound lead #{i + 1}", "workshop", month, probability=10, estimated_value=2500)

    print("Booking revenue...")
    rev_uc = CreateRevenueEntryUseCase(db)
    rev_uc.execute(ACCOUNT_ID, first_day, 6000, "workshop", "Northwind offsite")
    rev_uc.execute(ACCOUNT_ID, today, 2500, "advisory", "Monthly retainer")

    # ═══════════════════════════════════════════════════════════════
    # Network
    # ═══════════════════════════════════════════════════════════════
    print("Creating contacts...")
    design = CreateSkillUseCase(db).execute("Brand design", "design")
    copy = CreateSkillUseCase(db).execute("Copywriting", "content")
    dana = CreateContactUseCase(db).execute(
        ACCOUNT_ID, "Dana Designer", skill_ids=[design],
        email="dana@example.com", rate_min=80, rate_max=140, rate_type="hourly", trust_rating=5,
    )
    CreateContactUseCase(db).execute(ACCOUNT_ID, "Sam Writer", skill_ids=[copy], availability_status="busy")
    CreateReferralUseCase(db).execute(
        ACCOUNT_ID, dana, "Northwind", first_day,
        project_type="Rebrand", estimated_value=12000, commission_fee=1200,
        follow_up_date=today + timedelta(days=7),
    )

    # ═══════════════════════════════════════════════════════════════
    # Insights
    # ═══════════════════════════════════════════════════════════════
    created = InsightGenerationService(db).generate(ACCOUNT_ID, today=today, now=datetime.now(timezone.utc))
    print(f"Generated {len(created)} insights")


with session_scope() as db:
    seed(db)
print("Done.")
