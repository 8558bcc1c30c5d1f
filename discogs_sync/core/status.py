"""Status file writer"""

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from discogs_sync.core.models import SyncReport


def write_status(report: SyncReport, status_file: Path) -> bool:
    data = {
        "status": "success" if report.success else "failed",
        "last_sync_time": datetime.now(timezone.utc).isoformat(),
        **report.summary(),
        "desired_count": report.desired_count,
        "actual_count": report.actual_count,
        "dry_run": report.dry_run,
        "last_error": report.error or (report.issues[-1].message if report.issues else None),
    }
    return _atomic_write(status_file, data)


def write_running_status(status_file: Path) -> bool:
    data = {
        "status": "running",
        "last_sync_time": datetime.now(timezone.utc).isoformat(),
        **SyncReport().summary(),
        "desired_count": 0,
        "actual_count": 0,
        "dry_run": False,
        "last_error": None,
    }
    return _atomic_write(status_file, data)


def _atomic_write(path: Path, data: dict) -> bool:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=".status_", suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            os.replace(temp_path, path)
            return True
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise
    except OSError:
        return False
