from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator


def append_jsonl(path: Path, obj: Dict[str, Any]) -> None:
    """
    Append one JSON object as one JSONL line.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    line = json.dumps(obj, ensure_ascii=False)
    with path.open("a", encoding="utf-8") as f:
        f.write(line + "\n")
        f.flush()


def iter_jsonl(path: Path) -> Iterator[Dict[str, Any]]:
    """
    Iterate JSONL as dictionaries.
    Skips empty lines.
    """
    if not path.exists():
        raise FileNotFoundError(f"JSONL file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            yield json.loads(line)


def write_jsonl(path: Path, objs: Iterable[Dict[str, Any]]) -> None:
    """
    Replace the file with the given objects, one per line.
    Writes to a sibling temp file first so readers never see a half-written file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        for obj in objs:
            f.write(json.dumps(obj, ensure_ascii=False) + "\n")
        f.flush()
    os.replace(tmp, path)
