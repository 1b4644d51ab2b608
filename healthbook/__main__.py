"""Run one service: ``python -m healthbook appointment --port 3003``."""
import argparse
import os

SERVICE_NAMES = ("user", "doctor", "appointment", "feedback", "notification")

def main(argv=None):
    parser = argparse.ArgumentParser(prog="healthbook", description="Run a Healthbook service")
    parser.add_argument("service", choices=SERVICE_NAMES)
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args(argv)

    # Settings are read at import time, so select the service first
    os.environ["SERVICE_NAME"] = args.service

    import uvicorn
    from .core.config import settings

    uvicorn.run(
        "healthbook.main:app",
        host=args.host,
        port=args.port or settings.service_port(args.service),
        reload=args.reload or settings.DEBUG,
        log_level="info"
    )

if __name__ == "__main__":
    main()
