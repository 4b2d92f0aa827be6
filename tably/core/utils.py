import datetime
import logging

logger = logging.getLogger(__name__)

def utcnow() -> datetime.datetime:
    """Naive UTC timestamp, the form every stored datetime uses."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)

def local_midnight_utc(now: datetime.datetime) -> datetime.datetime:
    """Start of the local calendar day containing naive-UTC `now`, in naive UTC."""
    local = now.replace(tzinfo=datetime.timezone.utc).astimezone()
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(datetime.timezone.utc).replace(tzinfo=None)

def normalize_phone(phone_number: str) -> str:
    return (phone_number or "").strip()
