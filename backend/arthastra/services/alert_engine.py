"""Alert engine.

Turns changes in a user's stored data into dashboard alerts: credit-score
movements, abandoned onboarding and upcoming EMIs. Each trigger event yields
at most one alert; before inserting, the engine looks for an existing alert
of the same type carrying the same discriminator in its metadata (or, for
drop-offs, any alert inside the look-back window).

Also builds the demo data a freshly registered account starts with.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from arthastra.config import settings
from arthastra.models.alert import Alert, AlertType, AlertSeverity
from arthastra.models.user import User, ONBOARDING_COMPLETE_STEP
from arthastra.services.applicant_profile import MIN_CREDIT_SCORE, MAX_CREDIT_SCORE
from arthastra.services.payment_calculator import calculate_emi, round_half_up
from arthastra.services.whatsapp_notifier import notify_drop_off, notify_emi_reminder

logger = logging.getLogger(__name__)

# Score drop that turns a change alert into a warning
SIGNIFICANT_DROP = 20
CRITICAL_EMI_DAYS = 1

STEP_NAMES = ["", "Basic Profile", "Employment Details", "Financial Info", "Loan Requirements", "Enhancements"]

SEED_HISTORY_MONTHS = 6
SEED_EMI_RATE = 12.0  # % p.a.
SEED_EMI_LOANS = (("Home Loan", 2), ("Personal Loan", 4), ("Car Loan", 6))
SPENDING_SPLIT = {
    "travel": 0.15,
    "food": 0.30,
    "shopping": 0.20,
    "bills": 0.25,
    "other": 0.10,
}


def _utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _parse_date(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        return _utc(value)
    if not value:
        return None
    try:
        return _utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError:
        return None


def score_label(score: int) -> str:
    if score >= 750:
        return "Excellent"
    if score >= 650:
        return "Good"
    return "Needs Improvement"


# ── Registration data ────────────────────────────────────────

def _months_ago(now: datetime, months: int) -> datetime:
    year, month = divmod(now.year * 12 + now.month - 1 - months, 12)
    return now.replace(year=year, month=month + 1, day=min(now.day, 28))


def seed_credit_history(score: int, now: datetime, rng: random.Random | None = None) -> list[dict]:
    """Six monthly entries trending up to ``score``, which is the latest entry."""
    rng = rng or random.Random()
    history = []
    for i in range(SEED_HISTORY_MONTHS - 1, -1, -1):
        if i == 0:
            value = score
        else:
            value = score + rng.randint(-10, 19) - i * 5
        history.append({
            "score": max(MIN_CREDIT_SCORE, min(MAX_CREDIT_SCORE, value)),
            "date": _months_ago(now, i).isoformat(),
        })
    return history


def seed_emi_schedule(loan_amount: int, tenure_years: int, now: datetime) -> list[dict]:
    emi = calculate_emi(loan_amount, SEED_EMI_RATE, tenure_years * 12)
    return [
        {
            "amount": emi,
            "due_date": (now + timedelta(days=days)).isoformat(),
            "loan_name": loan_name,
            "paid": False,
        }
        for loan_name, days in SEED_EMI_LOANS
    ]


def seed_spending_categories(monthly_expenses: int) -> dict:
    return {name: round_half_up(monthly_expenses * share) for name, share in SPENDING_SPLIT.items()}


def record_score(user: User, score: int, now: datetime) -> bool:
    """Append a history entry when ``score`` differs from the latest one."""
    history = list(user.credit_score_history or [])
    if history and history[-1].get("score") == score:
        return False
    history.append({"score": score, "date": now.isoformat()})
    # Reassign so SQLAlchemy sees the JSON change
    user.credit_score_history = history
    return True


def create_welcome_alerts(user: User) -> list[Alert]:
    """System welcome plus the initial credit-score alert.

    The score alert carries the latest history date, so the change detector
    treats the seeded history as already announced.
    """
    score = user.credit_score
    history = user.credit_score_history or []
    meta = {"score": score}
    if history:
        meta["history_date"] = history[-1].get("date")
    return [
        Alert(
            user_id=user.id,
            alert_type=AlertType.SYSTEM,
            severity=AlertSeverity.INFO,
            title="Welcome to ArthAstra! 🎉",
            message=(
                f"Hi {user.name or 'there'}! Your profile is set up. Explore your dashboard to check "
                f"loan eligibility, compare offers, and track your credit score."
            ),
            meta={},
        ),
        Alert(
            user_id=user.id,
            alert_type=AlertType.CREDIT_SCORE_CHANGE,
            severity=AlertSeverity.INFO if score >= 650 else AlertSeverity.WARNING,
            title=f"Credit Score: {score} — {score_label(score)}",
            message=(
                f"Your initial credit score is {score}. We'll track changes and alert you "
                f"instantly whenever it moves."
            ),
            meta=meta,
        ),
    ]


# ── Detectors ────────────────────────────────────────────────

def detect_credit_score_change(user: User) -> Optional[Alert]:
    """Alert on the move between the last two history entries, if any."""
    history = user.credit_score_history or []
    if len(history) < 2:
        return None
    previous, latest = history[-2], history[-1]
    delta = (latest.get("score") or 0) - (previous.get("score") or 0)
    if delta == 0:
        return None

    if delta > 0:
        title = f"Credit Score Up by {delta} points 📈"
        message = f"Great news! Your credit score rose from {previous['score']} to {latest['score']}."
    else:
        title = f"Credit Score Down by {-delta} points 📉"
        message = (
            f"Your credit score fell from {previous['score']} to {latest['score']}. "
            f"Check for missed payments or new credit enquiries."
        )
    return Alert(
        user_id=user.id,
        alert_type=AlertType.CREDIT_SCORE_CHANGE,
        severity=AlertSeverity.WARNING if delta <= -SIGNIFICANT_DROP else AlertSeverity.INFO,
        title=title,
        message=message,
        meta={
            "previous_score": previous.get("score"),
            "score": latest.get("score"),
            "change": delta,
            "history_date": latest.get("date"),
        },
    )


def is_dropped_off(user: User, now: datetime) -> bool:
    if user.onboarding_step >= ONBOARDING_COMPLETE_STEP or not user.last_active_at:
        return False
    inactive = _utc(now) - _utc(user.last_active_at)
    return inactive > timedelta(hours=settings.drop_off_inactive_hours)


def detect_drop_off(user: User, now: datetime, source: str = "engine") -> Optional[Alert]:
    if not is_dropped_off(user, now):
        return None
    step = user.onboarding_step
    stopped_at = STEP_NAMES[step] if 0 < step < len(STEP_NAMES) else f"Step {step}"
    return Alert(
        user_id=user.id,
        alert_type=AlertType.DROP_OFF,
        severity=AlertSeverity.WARNING,
        title="Resume Your Application 🚀",
        message=f"Hi {user.name or 'there'}, you stopped at {stopped_at}. Finish now to see your offers!",
        meta={"stopped_step": step, "source": source},
    )


def detect_emi_reminders(user: User, now: datetime) -> list[Alert]:
    """One alert per unpaid EMI due within the reminder horizon."""
    alerts = []
    horizon = timedelta(days=settings.emi_reminder_days)
    for emi in user.emi_schedule or []:
        if emi.get("paid"):
            continue
        due = _parse_date(emi.get("due_date"))
        if due is None:
            continue
        until_due = due - _utc(now)
        if until_due <= timedelta(0) or until_due > horizon:
            continue
        loan_name = emi.get("loan_name") or "your loan"
        alerts.append(Alert(
            user_id=user.id,
            alert_type=AlertType.EMI_REMINDER,
            severity=(
                AlertSeverity.CRITICAL if until_due <= timedelta(days=CRITICAL_EMI_DAYS)
                else AlertSeverity.WARNING
            ),
            title="Upcoming EMI Due 💰",
            message=f"Your EMI of ₹{emi.get('amount')} for {loan_name} is due on {due.date().isoformat()}.",
            meta={
                "loan_name": loan_name,
                "due_date": emi.get("due_date"),
                "amount": emi.get("amount"),
                "days_left": until_due.days,
            },
        ))
    return alerts


# ── Persistence ──────────────────────────────────────────────

async def alert_exists(db: AsyncSession, alert: Alert, now: datetime) -> bool:
    """Whether the trigger event behind ``alert`` has already been alerted."""
    query = select(Alert.id).where(
        Alert.user_id == alert.user_id,
        Alert.alert_type == alert.alert_type,
    )
    if alert.alert_type == AlertType.DROP_OFF:
        window = timedelta(hours=settings.drop_off_alert_window_hours)
        query = query.where(Alert.created_at > _utc(now) - window)
    elif alert.alert_type == AlertType.CREDIT_SCORE_CHANGE:
        query = query.where(Alert.meta["history_date"].as_string() == str(alert.meta.get("history_date")))
    elif alert.alert_type == AlertType.EMI_REMINDER:
        query = query.where(
            Alert.meta["loan_name"].as_string() == str(alert.meta.get("loan_name")),
            Alert.meta["due_date"].as_string() == str(alert.meta.get("due_date")),
        )
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def _insert_if_new(db: AsyncSession, alert: Alert, now: datetime) -> bool:
    if await alert_exists(db, alert, now):
        return False
    db.add(alert)
    return True


async def generate_alerts_for_user(db: AsyncSession, user: User, now: datetime) -> dict:
    created = 0
    sent = 0

    score_alert = detect_credit_score_change(user)
    if score_alert and await _insert_if_new(db, score_alert, now):
        created += 1

    drop_alert = detect_drop_off(user, now)
    if drop_alert and await _insert_if_new(db, drop_alert, now):
        created += 1
        if user.phone:
            result = await notify_drop_off(user.phone, user.name or "there", user.onboarding_step)
            sent += int(bool(result.get("success")))

    for emi_alert in detect_emi_reminders(user, now):
        if not await _insert_if_new(db, emi_alert, now):
            continue
        created += 1
        if emi_alert.severity == AlertSeverity.CRITICAL and user.phone:
            result = await notify_emi_reminder(
                user.phone, user.name or "there", emi_alert.meta["loan_name"],
                emi_alert.meta["amount"] or 0, emi_alert.meta["days_left"],
            )
            sent += int(bool(result.get("success")))

    return {"alerts_created": created, "whatsapp_sent": sent}


async def generate_alerts(db: AsyncSession, now: Optional[datetime] = None,
                          user_id: Optional[int] = None) -> dict:
    """Run every detector over all users (or one user) and persist new alerts."""
    now = now or datetime.now(timezone.utc)
    query = select(User)
    if user_id is not None:
        query = query.where(User.id == user_id)
    users = (await db.execute(query)).scalars().all()

    totals = {"alerts_created": 0, "whatsapp_sent": 0}
    for user in users:
        counts = await generate_alerts_for_user(db, user, now)
        totals["alerts_created"] += counts["alerts_created"]
        totals["whatsapp_sent"] += counts["whatsapp_sent"]
        # Make this user's inserts visible to the next existence checks
        await db.flush()

    logger.info(
        "Alert engine: %d users scanned, %d alerts created, %d WhatsApp sent",
        len(users), totals["alerts_created"], totals["whatsapp_sent"],
    )
    return {**totals, "timestamp": now.isoformat()}


async def process_drop_offs(db: AsyncSession, now: Optional[datetime] = None) -> dict:
    """Batch sweep for abandoned onboarding: alert and nudge over WhatsApp."""
    now = now or datetime.now(timezone.utc)
    cutoff = _utc(now) - timedelta(hours=settings.drop_off_inactive_hours)
    result = await db.execute(
        select(User)
        .where(
            User.onboarding_step < ONBOARDING_COMPLETE_STEP,
            User.last_active_at < cutoff,
            User.phone != "",
        )
        .limit(settings.drop_off_batch_size)
    )
    users = result.scalars().all()

    details = []
    for user in users:
        alert = detect_drop_off(user, now, source="cron")
        if alert is None or not await _insert_if_new(db, alert, now):
            continue
        send = await notify_drop_off(user.phone, user.name or "there", user.onboarding_step)
        details.append({
            "user_id": user.id,
            "name": user.name,
            "status": "sent" if send.get("success") else "failed",
        })

    logger.info("Drop-off sweep: %d candidates, %d nudged", len(users), len(details))
    return {"processed": len(details), "details": details}
