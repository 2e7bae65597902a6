import argparse
import asyncio

import uvicorn


def run_sync(kind: str) -> None:
    from database import SessionLocal, init_database
    from services.sync.maintenance import purge_stale_records
    from services.sync.service import SyncService

    init_database()
    db = SessionLocal()
    try:
        service = SyncService(db)
        if kind == "genres":
            count = asyncio.run(service.sync_genres())
            print(f"[BOOTLOADER] Genres updated: {count}")
        elif kind == "trending":
            count = asyncio.run(service.sync_trending())
            print(f"[BOOTLOADER] Trending updated: {count}")
        elif kind == "purge":
            print(f"[BOOTLOADER] Purged: {purge_stale_records(db)}")
        else:
            print(f"[BOOTLOADER] Sync results: {asyncio.run(service.sync_if_needed())}")
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Bootloader for the Stream Haven backend.")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Start the API server")
    serve.add_argument("--host", default="0.0.0.0", help="Host to bind")
    serve.add_argument("--port", type=int, default=8000, help="Port to bind")
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload (dev mode)")

    sync = commands.add_parser("sync", help="Run a catalog sync once and exit")
    sync.add_argument("kind", nargs="?", default="due", choices=["due", "genres", "trending", "purge"])

    args = parser.parse_args()

    if args.command == "serve":
        print(f"[BOOTLOADER] Starting API on {args.host}:{args.port} ...")
        uvicorn.run("app:app", host=args.host, port=args.port, reload=args.reload)
    else:
        run_sync(args.kind)


if __name__ == "__main__":
    main()
