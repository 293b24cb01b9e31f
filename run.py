"""
Start the helpdesk API under uvicorn.

    python run.py                  # 127.0.0.1:8000
    python run.py --reload         # auto-reload while developing
    python run.py --host 0.0.0.0 --port 8080 --workers 4
"""
import argparse
import uvicorn

from helpdesk.config.settings import settings


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Helpdesk workflow API server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="restart on code changes")
    parser.add_argument("--workers", type=int, default=1, help="ignored with --reload")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    workers = 1 if args.reload else max(args.workers, 1)

    print(
        f"Helpdesk API on http://{args.host}:{args.port} "
        f"(env={settings.environment}, db={settings.mongo_db}, workers={workers})"
    )
    uvicorn.run(
        "helpdesk.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=workers,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
