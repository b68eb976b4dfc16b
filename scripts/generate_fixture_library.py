#!/usr/bin/env python3
from __future__ import annotations

import argparse
import io
import json
import random
from datetime import UTC, datetime, timedelta
from pathlib import Path

try:
    from PIL import Image, ImageDraw
except ImportError as exc:  # pragma: no cover - runtime guard
    raise SystemExit("Pillow is required. Install dev deps before running.") from exc


CLUSTER_SPACING = timedelta(minutes=5)
IMAGE_SIZE = 64


def _generate_png_bytes(seed: int, taken_at: datetime) -> bytes:
    base = (taken_at.month * 21 + seed * 7) % 256
    img = Image.new("RGB", (IMAGE_SIZE, IMAGE_SIZE), color=(base, (base * 3) % 256, 160))
    draw = ImageDraw.Draw(img)
    draw.text((4, 4), taken_at.strftime("%m/%d"), fill=(255, 255, 255))
    draw.text((4, 20), taken_at.strftime("%H:%M"), fill=(255, 255, 255))
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def _month_start(now: datetime, months_back: int) -> datetime:
    month_index = now.year * 12 + (now.month - 1) - months_back
    return datetime(month_index // 12, month_index % 12 + 1, 1, tzinfo=UTC)


def _timestamps(
    now: datetime,
    total: int,
    months_back: int,
    photos_per_day: int,
    simulate_clusters: bool,
    rng: random.Random,
) -> list[datetime]:
    days_per_month = max(1, total // months_back // photos_per_day)
    stamps: list[datetime] = []
    for month in range(1, months_back + 1):
        start = _month_start(now, month)
        for day_index in range(days_per_month):
            day_of_month = min(1 + day_index * 5, 28)
            base = start.replace(day=day_of_month, hour=10 + day_index % 8)
            for photo_index in range(photos_per_day):
                if len(stamps) >= total:
                    return stamps
                if simulate_clusters:
                    stamps.append(base + CLUSTER_SPACING * photo_index)
                else:
                    stamps.append(base + timedelta(minutes=rng.randrange(60 * 8)))
    return stamps


def build_library(
    output_dir: Path,
    *,
    total: int,
    months_back: int,
    photos_per_day: int,
    simulate_clusters: bool,
    keep_album: str,
    seed: int,
) -> dict[str, object]:
    rng = random.Random(seed)
    now = datetime.now(UTC)
    media_dir = output_dir / "media"
    media_dir.mkdir(parents=True, exist_ok=True)
    items: list[dict[str, object]] = []
    for index, taken_at in enumerate(
        _timestamps(now, total, months_back, photos_per_day, simulate_clusters, rng)
    ):
        item_id = f"fixture-{index + 1:05d}"
        payload = _generate_png_bytes(index, taken_at)
        (media_dir / f"{item_id}.png").write_bytes(payload)
        items.append(
            {
                "id": item_id,
                "createTime": taken_at.isoformat().replace("+00:00", "Z"),
                "isFavorite": False,
                "mediaType": "image/png",
                "fileSize": len(payload),
            }
        )
    return {"items": items, "albums": {keep_album: []}}


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a fixture photo library manifest.")
    parser.add_argument("output", type=Path, help="Directory to write the library into.")
    parser.add_argument("--total", type=int, default=50, help="Number of photos.")
    parser.add_argument("--months-back", type=int, default=12, help="Months to spread over.")
    parser.add_argument("--photos-per-day", type=int, default=5, help="Photos per burst day.")
    parser.add_argument(
        "--no-clusters",
        action="store_true",
        help="Scatter photos over the day instead of 5-minute bursts.",
    )
    parser.add_argument("--keep-album", default="Keep", help="Protected album to create.")
    parser.add_argument("--seed", type=int, default=0, help="Random seed for scattered times.")
    args = parser.parse_args()
    if args.months_back < 1 or args.photos_per_day < 1:
        parser.error("--months-back and --photos-per-day must be positive.")

    manifest = build_library(
        args.output,
        total=args.total,
        months_back=min(args.months_back, 120),
        photos_per_day=args.photos_per_day,
        simulate_clusters=not args.no_clusters,
        keep_album=args.keep_album,
        seed=args.seed,
    )
    manifest_path = args.output / "library.json"
    manifest_path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
    print(f"Wrote {len(manifest['items'])} items to {manifest_path}")  # type: ignore[arg-type]
    print(f"Set LIBRARY_MANIFEST_PATH={manifest_path} to scan it.")


if __name__ == "__main__":
    main()
