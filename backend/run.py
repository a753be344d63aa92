"""
Samwad Backend — Uvicorn Launcher
Starts the HTTP API and the Socket.IO queue on one port.

Usage:
    python run.py
    python run.py --port 3000 --reload
    python run.py --database-url sqlite:///./data/dev.db --no-rebroadcast
"""
import argparse
import os

import uvicorn

# Command-line overrides are handed to Settings through the environment,
# so the reloader's child process sees them too.
ENV_OVERRIDES = {
    "database_url": "DATABASE_URL",
    "upload_dir": "UPLOAD_DIR",
    "minutes_per_position": "MINUTES_PER_POSITION",
}


def main():
    parser = argparse.ArgumentParser(description="Sankal Samwad Backend Server")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=3000, help="Bind port (default: 3000)")
    parser.add_argument("--reload", action="store_true", help="Enable hot reload for development")
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    parser.add_argument("--upload-dir", help="Override UPLOAD_DIR")
    parser.add_argument("--minutes-per-position", type=int, help="Default wait estimate per queue position")
    parser.add_argument("--no-rebroadcast", action="store_true", help="Disable the periodic wait-time refresh")
    parser.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"])

    args = parser.parse_args()

    for option, env_name in ENV_OVERRIDES.items():
        value = getattr(args, option)
        if value is not None:
            os.environ[env_name] = str(value)
    if args.no_rebroadcast:
        os.environ["WAIT_REBROADCAST_SECONDS"] = "0"
    os.environ["LOG_LEVEL"] = args.log_level.upper()

    print(f"""
    ========================================================
      Sankal Samwad -- Backend Server
      API:       http://{args.host}:{args.port}/api
      Socket.IO: ws://{args.host}:{args.port}/socket.io/
      Uploads:   http://{args.host}:{args.port}/uploads/
      Health:    http://localhost:{args.port}/health
    ========================================================
    """)

    # Exactly one worker: queue, presence and call buffers live in this process
    uvicorn.run(
        "samwad.main:build_asgi_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=1,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
