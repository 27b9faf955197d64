"""
Guard appointment slots at the database level

- reminder_sent BOOLEAN on appointments (databases created before reminders)
- uq_appointments_active_slot: unique (appointment_date, start_time) over
  active statuses, so two active appointments can never share a start even
  if two workers bypass the booking lock

Fails if existing data already holds two active appointments with the same
start; resolve those by hand first (see the query printed on failure).
"""

# Ensure this script can be run directly from the repo root
import sys
from pathlib import Path

CURRENT_DIR = Path(__file__).resolve().parent
ROOT_DIR = CURRENT_DIR.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError

from glam_booking.database import engine

ACTIVE_FILTER = "status IN ('scheduled', 'confirmed', 'in_progress', 'completed')"

DUPLICATES_QUERY = f"""
    SELECT appointment_date, start_time, COUNT(*)
    FROM appointments
    WHERE {ACTIVE_FILTER}
    GROUP BY appointment_date, start_time
    HAVING COUNT(*) > 1
"""


def upgrade():
    columns = {c["name"] for c in inspect(engine).get_columns("appointments")}

    with engine.connect() as conn:
        if "reminder_sent" not in columns:
            conn.execute(
                text(
                    """
                    ALTER TABLE appointments
                    ADD COLUMN reminder_sent BOOLEAN NOT NULL DEFAULT FALSE;
                    """
                )
            )

        duplicates = conn.execute(text(DUPLICATES_QUERY)).fetchall()
        if duplicates:
            print("Active appointments sharing a start time, fix these first:")
            for day, start, count in duplicates:
                print(f"  {day} {start}: {count} appointments")
            print(DUPLICATES_QUERY)
            sys.exit(1)

        try:
            conn.execute(
                text(
                    f"""
                    CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_active_slot
                    ON appointments (appointment_date, start_time)
                    WHERE {ACTIVE_FILTER};
                    """
                )
            )
        except IntegrityError as e:
            conn.rollback()
            print(f"Could not create uq_appointments_active_slot: {e.orig}")
            sys.exit(1)

        conn.commit()
        print("Migration add_appointment_slot_guard applied successfully")


def downgrade():
    with engine.connect() as conn:
        conn.execute(text("DROP INDEX IF EXISTS uq_appointments_active_slot"))
        conn.commit()
        print("Migration add_appointment_slot_guard rolled back (reminder_sent kept)")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Manage the appointment slot guard migration")
    parser.add_argument("--down", action="store_true", help="Rollback the migration")
    args = parser.parse_args()

    if args.down:
        downgrade()
    else:
        upgrade()
