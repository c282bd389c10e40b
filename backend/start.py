import os
import sys
import uvicorn
import socket

# SET DATABASE_URL BEFORE importing liftplan modules!
# db.py builds its engine from the environment at import time
if not os.getenv("DATABASE_URL"):
    base_dir = os.path.dirname(os.path.abspath(__file__))
    db_path = os.path.join(base_dir, "liftplan.db")
    # SQLite URL format: sqlite:///absolute/path/to/file.db (3 slashes for absolute)
    os.environ["DATABASE_URL"] = f"sqlite:///{db_path}"
    print(f"[INFO] Using SQLite database at: {db_path}")

from liftplan.main import app as fastapi_app  # noqa: E402


def pick_port(host: str, preferred: int, tries: int = 10) -> int:
    # the first port at or above `preferred` nothing is bound to on `host`
    for port in range(preferred, preferred + tries):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            try:
                sock.bind((host, port))
            except OSError:
                continue
        return port
    raise RuntimeError(f"No free port in {preferred}-{preferred + tries - 1} on {host}")


if __name__ == "__main__":
    host = os.getenv("HOST", "127.0.0.1")
    try:
        port = pick_port(host, int(os.getenv("PORT", "8000")))
    except RuntimeError as e:
        print(f"[ERROR] {e}")
        sys.exit(1)

    print(f"[INFO] liftplan API on http://{host}:{port}")
    uvicorn.run(fastapi_app, host=host, port=port, reload=False)
