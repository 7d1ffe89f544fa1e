"""EXIF-like metadata rows for a picked media item."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Sequence, Tuple

from core.schemas.picker import PickedMediaItem

NOT_AVAILABLE = "N/A"


def _or_na(value: Any) -> str:
    if value is None or value == "":
        return NOT_AVAILABLE
    return str(value)


def format_creation_time(value: Optional[str]) -> str:
    if not value:
        return NOT_AVAILABLE
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return parsed.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def metadata_rows(item: PickedMediaItem) -> List[Tuple[str, str]]:
    media_file = item.mediaFile
    meta = media_file.mediaFileMetadata
    rows: List[Tuple[str, str]] = [
        ("Filename", _or_na(media_file.filename)),
        ("Type", item.type),
        ("Mime Type", _or_na(media_file.mimeType)),
    ]
    if meta is None:
        return rows

    rows.append(("Creation Time", format_creation_time(meta.creationTime)))
    if meta.width and meta.height:
        rows.append(("Dimensions", f"{meta.width} x {meta.height}"))
    else:
        rows.append(("Dimensions", NOT_AVAILABLE))

    photo = meta.photoMetadata
    if photo is not None:
        rows.extend(
            [
                ("Camera Make", _or_na(meta.cameraMake or photo.cameraMake)),
                ("Camera Model", _or_na(meta.cameraModel or photo.cameraModel)),
                ("Focal Length", _or_na(photo.focalLength)),
                ("Aperture", _or_na(photo.apertureFNumber)),
                ("ISO", _or_na(photo.isoEquivalent)),
                ("Exposure Time", _or_na(photo.exposureTime)),
            ]
        )

    video = meta.videoMetadata
    if video is not None:
        if video.durationMillis is not None:
            rows.append(("Duration", f"{video.durationMillis / 1000:.1f} s"))
        rows.append(("FPS", _or_na(video.fps)))

    return rows


def format_table(rows: Sequence[Tuple[str, str]]) -> str:
    if not rows:
        return ""
    width = max(len(label) for label, _ in rows) + 1
    return "\n".join(f"{label + ':':<{width}} {value}" for label, value in rows)
