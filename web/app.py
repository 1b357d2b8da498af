import logging
import math
import threading
import uuid
from collections import OrderedDict

from flask import Flask, request, jsonify
from dotenv import load_dotenv

from helpers.globals import cfg
from helpers.environment import EnvironmentInfo
from helpers.reactive import Ref
from helpers.device_classifier import DeviceClassifier, MOBILE_BREAKPOINT, DESKTOP_BREAKPOINT

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] %(message)s"
)

MAX_SESSIONS = int(cfg("api.max_sessions", 1000))

# In-memory only; sessions die with the process
SESSION_CACHE = OrderedDict()
SESSION_CACHE_LOCK = threading.Lock()

_RESPONSE_KEYS = {
    "device_key": "deviceKey",
    "is_mobile": "isMobile",
    "is_tablet": "isTablet",
    "is_desktop": "isDesktop",
    "is_via": "isVia",
    "is_quark": "isQuark",
    "is_uc": "isUC",
    "is_safari": "isSafari",
    "is_harmony": "isHarmony",
    "is_huawei_browser": "isHuaweiBrowser",
    "is_android": "isAndroid",
    "is_ios": "isiOS",
    "root_classes": "rootClasses",
}


class RequestError(ValueError):
    pass


class Session:
    """
    A classifier bound to its own environment and override signal.

    Request threads hold lock across an update and the response read, so a
    response always describes the viewport and mode that produced it.
    """

    def __init__(self, user_agent: str, width: int, height: int, mode=None):
        self.lock = threading.Lock()
        self.environment = EnvironmentInfo(user_agent, width, height)
        self.mode = Ref(mode)
        self.classifier = DeviceClassifier(self.mode, self.environment)


def preflight():
    if not isinstance(MOBILE_BREAKPOINT, int) or not isinstance(DESKTOP_BREAKPOINT, int):
        logging.error("[API] Classifier breakpoints must be integers")
        return False

    if MOBILE_BREAKPOINT <= 0 or DESKTOP_BREAKPOINT <= 0:
        logging.error("[API] Classifier breakpoints must be positive")
        return False

    if MOBILE_BREAKPOINT >= DESKTOP_BREAKPOINT:
        logging.error(
            f"[API] mobile_breakpoint ({MOBILE_BREAKPOINT}) must be below "
            f"desktop_breakpoint ({DESKTOP_BREAKPOINT})"
        )
        return False

    logging.info(
        f"[API] Classifier breakpoints: mobile<{MOBILE_BREAKPOINT}, tablet<{DESKTOP_BREAKPOINT}"
    )
    return True


preflight()
app = Flask(__name__)


def to_response(classifier: DeviceClassifier) -> dict:
    return {_RESPONSE_KEYS[k]: v for k, v in classifier.snapshot().items()}


def _read_body() -> dict:
    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        raise RequestError("Invalid JSON")
    return body


def _read_size(body: dict, name: str) -> int:
    value = body.get(name)
    # bool is an int subclass, but never a size
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RequestError(f"'{name}' must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise RequestError(f"'{name}' must be finite")
    if value < 0:
        raise RequestError(f"'{name}' must not be negative")
    return int(value)


def _read_classification_input(body: dict):
    width = _read_size(body, "width")
    height = _read_size(body, "height")
    user_agent = body.get("userAgent")
    if user_agent is None:
        user_agent = request.headers.get("User-Agent", "")
    if not isinstance(user_agent, str):
        raise RequestError("'userAgent' must be a string")
    return user_agent, width, height, body.get("mode")


def _get_session(session_id: str):
    with SESSION_CACHE_LOCK:
        return SESSION_CACHE.get(session_id)


@app.errorhandler(RequestError)
def handle_request_error(e):
    return jsonify({"error": str(e)}), 400


@app.route("/health", methods=["GET"])
def health_endpoint():
    return jsonify({"status": "ok"})


@app.route("/classify", methods=["POST"])
def classify_endpoint():
    try:
        user_agent, width, height, mode = _read_classification_input(_read_body())
        classifier = DeviceClassifier(Ref(mode), EnvironmentInfo(user_agent, width, height))
        return jsonify(to_response(classifier))

    except RequestError:
        raise
    except Exception as e:
        logging.error(f"[API] /classify failed: {e}", exc_info=True)
        return jsonify({"error": "Internal server error"}), 500


@app.route("/sessions", methods=["POST"])
def create_session_endpoint():
    try:
        user_agent, width, height, mode = _read_classification_input(_read_body())
        session = Session(user_agent, width, height, mode)
        session_id = uuid.uuid4().hex

        with SESSION_CACHE_LOCK:
            SESSION_CACHE[session_id] = session
            while len(SESSION_CACHE) > MAX_SESSIONS:
                evicted, _ = SESSION_CACHE.popitem(last=False)
                logging.info(f"[API] Session cache full, evicted {evicted}")

        with session.lock:
            response = to_response(session.classifier)
        response["sessionId"] = session_id
        return jsonify(response), 201

    except RequestError:
        raise
    except Exception as e:
        logging.error(f"[API] /sessions failed: {e}", exc_info=True)
        return jsonify({"error": "Internal server error"}), 500


@app.route("/sessions/<session_id>", methods=["GET"])
def get_session_endpoint(session_id):
    try:
        session = _get_session(session_id)
        if session is None:
            return jsonify({"error": "Unknown session"}), 404

        with session.lock:
            return jsonify(to_response(session.classifier))

    except Exception as e:
        logging.error(f"[API] GET /sessions/{session_id} failed: {e}", exc_info=True)
        return jsonify({"error": "Internal server error"}), 500


@app.route("/sessions/<session_id>/viewport", methods=["POST"])
def resize_session_endpoint(session_id):
    try:
        session = _get_session(session_id)
        if session is None:
            return jsonify({"error": "Unknown session"}), 404

        body = _read_body()
        width = _read_size(body, "width")
        height = _read_size(body, "height")

        with session.lock:
            session.environment.resize(width, height)
            return jsonify(to_response(session.classifier))

    except RequestError:
        raise
    except Exception as e:
        logging.error(f"[API] /sessions/{session_id}/viewport failed: {e}", exc_info=True)
        return jsonify({"error": "Internal server error"}), 500


@app.route("/sessions/<session_id>/mode", methods=["POST"])
def set_session_mode_endpoint(session_id):
    try:
        session = _get_session(session_id)
        if session is None:
            return jsonify({"error": "Unknown session"}), 404

        body = _read_body()

        with session.lock:
            session.mode.set(body.get("mode"))
            return jsonify(to_response(session.classifier))

    except RequestError:
        raise
    except Exception as e:
        logging.error(f"[API] /sessions/{session_id}/mode failed: {e}", exc_info=True)
        return jsonify({"error": "Internal server error"}), 500


@app.route("/sessions/<session_id>", methods=["DELETE"])
def delete_session_endpoint(session_id):
    with SESSION_CACHE_LOCK:
        session = SESSION_CACHE.pop(session_id, None)
    if session is None:
        return jsonify({"error": "Unknown session"}), 404
    return "", 204


def main():
    if preflight():
        host = cfg("api.host", "127.0.0.1")
        port = cfg("api.port", 5001)
        debug_mode = False

        logging.info(f"Starting Flask on {host}:{port}, debug={debug_mode}")

        app.run(host=host, port=port, debug=debug_mode)


if __name__ == "__main__":
    main()
