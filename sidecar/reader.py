from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any, Optional


class SidecarReader:
    """Iterate JSONL records, skipping blank and malformed lines."""

    def __init__(self, path: str | Path, kind: Optional[str] = None):
        self.path = Path(path)
        self.kind = kind

    def __iter__(self) -> Iterator[dict[str, Any]]:
        with self.path.open("r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line:
                    continue
                try:
                    rec = json.loads(line)
                except ValueError:
                    continue
                if self.kind is not None and rec.get("type") != self.kind:
                    continue
                yield rec
