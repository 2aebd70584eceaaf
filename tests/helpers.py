from datetime import date, datetime, timezone

# Wednesday; 16:00 UTC is 08:00 in Los Angeles
SERVICE_DAY = date(2025, 1, 15)
MORNING = datetime(2025, 1, 15, 16, 0, tzinfo=timezone.utc)
