import logging
import os

from flask import Flask, jsonify

from .services.images import DEFAULT_FETCH_TIMEOUT

DEFAULT_OFFICIAL_NAME = "Jesus H. De Una Jr."
DEFAULT_OFFICIAL_POSITION = "Punong Barangay"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logging.warning("Ignoring invalid %s=%r", name, raw)
        return default


def create_app(config=None):
    app = Flask(__name__)
    app.secret_key = os.getenv("SECRET_KEY", "dev")
    app.config["MAX_CONTENT_LENGTH"] = 1024 * 1024
    app.config["SITE_ROOT"] = os.getenv("SITE_ROOT", "/srv")
    app.config["SEAL_IMAGE_URL"] = os.getenv("SEAL_IMAGE_URL", "")
    app.config["SEAL_FETCH_TIMEOUT"] = _env_float("SEAL_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT)
    app.config["OFFICIAL_NAME"] = os.getenv("OFFICIAL_NAME", DEFAULT_OFFICIAL_NAME)
    app.config["OFFICIAL_POSITION"] = os.getenv("OFFICIAL_POSITION", DEFAULT_OFFICIAL_POSITION)
    app.config["SIGNATURE_URL"] = os.getenv("SIGNATURE_URL", "")
    if config:
        app.config.update(config)

    lib_logger = logging.getLogger("barangay_certs")
    if not lib_logger.handlers:
        lib_logger.setLevel(logging.DEBUG if app.debug else logging.INFO)

    @app.get("/health")
    def health():  # pragma: no cover - simple healthcheck
        return jsonify({"status": "ok"}), 200

    from .cli import gen_cert, list_templates, preview_cert
    from .routes.certificates import bp as certificates_bp

    app.register_blueprint(certificates_bp)
    app.cli.add_command(gen_cert)
    app.cli.add_command(preview_cert)
    app.cli.add_command(list_templates)

    return app
