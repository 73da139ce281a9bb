from datetime import datetime, timezone

# Microseconds keep append-only logs (job updates, messages) strictly ordered
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)


def today() -> str:
    return datetime.now(timezone.utc).date().isoformat()
