# resolve_cli.py

from __future__ import annotations

import argparse
from pathlib import Path

from imgcache.core.log import configure_logging
from imgcache.core.media.placeholders import is_error_placeholder, is_transparent_placeholder
from imgcache.core.media.resolver import ImageResolver
from imgcache.inputs.config import PolicyLoader
from imgcache.schemas.models import DisplayBounds


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Resolve one embedded image reference through the disk cache")
    p.add_argument("--url", type=str, required=True, help="Absolute, relative or data: URL")
    p.add_argument("--container", type=str, default=None, help="Container id (default: ungrouped)")
    p.add_argument("--config", type=str, default=None, help="Optional policy JSON")
    p.add_argument("--primary-dir", type=str, default=None)
    p.add_argument("--secondary-dir", type=str, default=None)
    p.add_argument("--online", type=int, choices=(0, 1), default=None, help="Allow network fetches")
    p.add_argument("--save-only", action="store_true", help="Only store the file, do not decode")
    p.add_argument("--error-image", action="store_true", help="Return the error placeholder on failure")
    p.add_argument("--max-width", type=int, default=None)
    p.add_argument("--max-height", type=int, default=None)
    p.add_argument("--out", type=str, default=None, help="Write the resolved image as PNG")
    p.add_argument("--log", type=str, default=None, help="Rotating log file path")

    args = p.parse_args(argv)

    if args.log:
        configure_logging(args.log)

    loader = PolicyLoader()
    policy = loader.load(args.config)
    display = None
    if args.max_width or args.max_height:
        display = DisplayBounds(
            max_width=args.max_width or policy.display.max_width,
            max_height=args.max_height or policy.display.max_height,
        )
    policy = loader.with_overrides(
        policy,
        primary_dir=Path(args.primary_dir) if args.primary_dir else None,
        secondary_dir=Path(args.secondary_dir) if args.secondary_dir else None,
        allow_network=bool(args.online) if args.online is not None else None,
        display=display,
    )

    resolver = ImageResolver(policy)
    image = resolver.resolve(
        args.url,
        args.container,
        return_placeholder_on_error=args.error_image,
        save_only=args.save_only,
    )

    if args.save_only:
        req = policy.request_for(args.url, args.container)
        loc = resolver.locator.locate(req.container_id, req.url)
        stored = loc.primary.is_file() or loc.secondary.is_file()
        print(f"saved: {loc.primary if stored else 'no'}")
        return 0 if stored else 1

    if image is None or is_transparent_placeholder(image) or is_error_placeholder(image):
        print("image: placeholder")
        if image is not None and args.out:
            image.save(args.out, format="PNG")
        return 1

    print(f"image: {image.width}x{image.height} {image.mode}")
    if args.out:
        image.save(args.out, format="PNG")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
