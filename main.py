"""Ṛta-Samvāda — dev launcher. Starts the API server in watch mode."""

import argparse
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "13013"))


def main():
    parser = argparse.ArgumentParser(description="Ṛta-Samvāda dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Session storage directory (default: ./data)")
    parser.add_argument("--echo", action="store_true",
                        help="Use the echo LLM instead of a real backend")
    parser.add_argument("--no-reload", action="store_true",
                        help="Disable auto-reload")
    args = parser.parse_args()

    # The app factory reads these, including in reload workers
    if args.data_dir:
        os.environ["DATA_DIR"] = str(args.data_dir.resolve())
    if args.echo:
        os.environ["LLM_PROVIDER_FORMAT"] = "echo"

    print(f"Starting API on http://localhost:{PORT} ...")
    uvicorn.run(
        "rta_samvada.app:create_app",
        factory=True,
        host=HOST,
        port=PORT,
        reload=not args.no_reload,
        reload_dirs=[str(ROOT / "rta_samvada")],
    )


if __name__ == "__main__":
    main()
