from __future__ import annotations

import os
import sys
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import List

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Logging is configured on first import; keep it out of the home directory.
os.environ.setdefault("FIELDMAP_LOG_DIR", tempfile.mkdtemp(prefix="fieldmap-logs-"))

from fieldmap_io.colors import StatusColor  # noqa: E402
from fieldmap_io.schema import FieldEntry, FieldSnapshot, MappingRecord, TargetNode  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FIELDMAP_CONFIG", raising=False)


@pytest.fixture
def sample_fields() -> List[FieldEntry]:
    return [
        FieldEntry(
            id="f-1",
            name="Phone",
            field_type="String",
            essence="Contact number",
            dgh_note="masked",
            always_returns="yes",
            notes="E.164",
            status_color=StatusColor.YELLOW,
        ),
        FieldEntry(id="f-2", name="IMSI", field_type="String", essence="Subscriber id"),
        FieldEntry(id="f-3", name="Age", field_type="Int", notes="years", status_color=StatusColor.RED),
    ]


@pytest.fixture
def imsi_mapping() -> MappingRecord:
    return MappingRecord(
        target_node=TargetNode(
            id="subscriber.imsi:7",
            name="imsi",
            type="string",
            rules=("required", "len:15"),
            path="subscriber.imsi",
        ),
        field=FieldSnapshot(name="IMSI", field_type="String", essence="Subscriber id"),
        mapping_details="copy as is",
        outputs="CDR, XDR",
        timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )
