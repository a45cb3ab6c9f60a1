"""Chat Pipe — dev launcher. Starts the API server in watch mode."""

import argparse
import logging
import os
import signal
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = os.getenv("PORT", "13015")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def main():
    parser = argparse.ArgumentParser(description="Chat Pipe dev launcher")
    parser.add_argument("--config", type=Path, default=None,
                        help="Pipe config file (default: ./data/config.json)")
    parser.add_argument("--init-config", action="store_true",
                        help="Write the config file with defaults filled in, then exit")
    args = parser.parse_args()

    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.init_config:
        from chat_pipe.app import DEFAULT_CONFIG_PATH
        from chat_pipe.config import load_config
        path = args.config or DEFAULT_CONFIG_PATH
        load_config(path)
        print(f"Config written to {path}")
        return

    # Build env for the subprocess so the app picks up the same config file
    env = os.environ.copy()
    if args.config:
        env["CHAT_PIPE_CONFIG"] = str(args.config.resolve())

    proc = subprocess.Popen(
        ["uvicorn", "chat_pipe.app:create_app", "--factory", "--reload",
         "--host", HOST, "--port", PORT, "--log-level", LOG_LEVEL.lower()],
        cwd=ROOT, env=env,
    )

    def shutdown(*_):
        print("\nShutting down...")
        proc.terminate()
        proc.wait()
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    print(f"Starting chat pipe on http://localhost:{PORT} ...")
    proc.wait()


if __name__ == "__main__":
    main()
