from pathlib import Path
from app.config import settings


def ensure_data_dir(data_path: Path | None = None) -> Path:
    path = data_path or settings.data_path
    path.mkdir(parents=True, exist_ok=True)
    return path
