import logging
import platform
import subprocess

from helpers.globals import cfg
from web.app import app, preflight


def gunicorn_command(host: str, port: int, threads: int) -> list:
    # one worker: sessions live in that worker's memory
    return [
        "gunicorn",
        "--bind", f"{host}:{port}",
        "--workers", "1",
        "--threads", str(threads),
        "web.app:app",
    ]


def main():
    """Serve the classifier API with Waitress on Windows, Gunicorn elsewhere."""
    if not preflight():
        logging.error("Preflight checks failed! Aborting startup.")
        return

    host = cfg("api.host", "127.0.0.1")
    port = cfg("api.port", 5001)
    threads = cfg("api.threads", 4)
    logging.getLogger().setLevel(str(cfg("api.log_level", "info")).upper())

    logging.info(f"[API] Serving device classifier on {host}:{port} with {threads} threads")

    if platform.system().lower() == "windows":
        from waitress import serve
        serve(app, host=host, port=port, threads=threads)
    else:
        subprocess.run(gunicorn_command(host, port, threads), check=True)


if __name__ == "__main__":
    main()
