#!/usr/bin/env python3
"""
Verkove CLI: serve the studio or poke at it from a terminal.

Usage:
  python cli.py serve                          # Start web server
  python cli.py catalog --category rings       # List base designs
  python cli.py generate "make it bigger" --base-design 1
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))


def cmd_serve(args):
    """Start the web server."""
    import uvicorn
    from verkove.config import CONFIG
    host = args.host or CONFIG.host
    port = args.port or CONFIG.port
    print(f"Starting server on {host}:{port}")
    uvicorn.run("verkove.api.server:app", host=host, port=port, reload=args.reload)


def cmd_catalog(args):
    """List the seed base designs."""
    from verkove.db.store import EntityStore
    store = EntityStore()
    designs = store.list_by_category(args.category) if args.category else store.list_base_designs()
    for d in designs:
        materials = ", ".join(d.specifications.materials) if d.specifications else "-"
        print(f"  {d.id:>3}  {d.name:<20} {d.category:<10} {materials}")
    print(f"\n{len(designs)} designs")


def cmd_generate(args):
    """Run one generation against a fresh store."""
    from verkove.config import CONFIG
    from verkove.db.store import EntityStore
    from verkove.engines.iteration import DesignIterationEngine
    from verkove.media import ImageStore
    from verkove.providers.client import build_providers
    from verkove.types import to_json

    store = EntityStore()
    images = ImageStore(CONFIG.upload_dir, CONFIG.upload_url_prefix,
                        CONFIG.max_upload_bytes, CONFIG.fetch_timeout_s)
    engine = DesignIterationEngine(store, images, build_providers(CONFIG).image, CONFIG)
    outcome = asyncio.run(engine.generate(args.prompt, args.base_design, args.previous_image))

    if args.json:
        print(json.dumps({"iteration": to_json(outcome.iteration), "message": outcome.message}, indent=2))
    else:
        print(f"\n{'='*50}")
        print(f"Prompt:    {outcome.iteration.prompt}")
        print(f"Image:     {outcome.iteration.image_url}")
        print(f"Generated: {'yes' if outcome.generated else 'no (fallback)'}")
        print(f"\n{outcome.iteration.ai_response}")


def main():
    parser = argparse.ArgumentParser(
        description="Verkove: AI-assisted jewelry design studio",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command")

    # serve
    p_serve = sub.add_parser("serve", help="Start web server")
    p_serve.add_argument("--host", default=None)
    p_serve.add_argument("--port", type=int, default=None)
    p_serve.add_argument("--reload", action="store_true")

    # catalog
    p_catalog = sub.add_parser("catalog", help="List base designs")
    p_catalog.add_argument("--category", default=None)

    # generate
    p_gen = sub.add_parser("generate", help="Generate one design iteration")
    p_gen.add_argument("prompt", help="What to change or create")
    p_gen.add_argument("--base-design", type=int, default=None)
    p_gen.add_argument("--previous-image", default=None)
    p_gen.add_argument("--json", action="store_true", help="Output JSON")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        return

    {"serve": cmd_serve, "catalog": cmd_catalog, "generate": cmd_generate}[args.command](args)


if __name__ == "__main__":
    main()
