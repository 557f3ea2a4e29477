#!/usr/bin/env python3
"""
Local File Compressor - Flask Web Application

A local browser page for shrinking images and optimizing PDFs. Results
stay in server memory for the lifetime of the page that produced them.
"""

import io
import logging
import os
import threading
import uuid
from pathlib import Path
from typing import Dict, Optional

from flask import (
    Flask,
    current_app,
    jsonify,
    render_template,
    request,
    send_file,
    session,
)
from flask_cors import CORS
from werkzeug.utils import secure_filename

# Add parent directory to path to import filecompress
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from filecompress import AppState, ImageCompressor, Mode, ProcessingConfig, SourceFile, Workspace
from filecompress.config import (
    DEFAULT_MAX_DIMENSION,
    DEFAULT_MAX_SIZE_MB,
    DEFAULT_QUALITY,
    Settings,
    configure_logging,
)
from filecompress.export import ExportArtifact

logger = logging.getLogger(__name__)

# Header (or ``page`` query parameter) naming the page load a request belongs to
PAGE_HEADER = "X-Page-Id"

# Workspace tracking, one per page load
workspaces: Dict[str, Workspace] = {}
workspaces_lock = threading.Lock()

# Worker pool shared by every workspace
image_compressor = ImageCompressor()


def cleanup_old_workspaces(max_age_seconds: int) -> None:
    """Drop workspaces nobody has used for more than max_age_seconds."""
    with workspaces_lock:
        stale = [
            page_id for page_id, workspace in workspaces.items()
            if workspace.idle_seconds() > max_age_seconds
        ]
        for page_id in stale:
            del workspaces[page_id]

    if stale:
        logger.info("Evicted %d idle workspace(s)", len(stale))


def open_page() -> str:
    """Start a fresh workspace for a newly loaded page and return its id."""
    cleanup_old_workspaces(current_app.config["SETTINGS"].workspace_ttl_seconds)

    page_id = str(uuid.uuid4())
    with workspaces_lock:
        workspaces[page_id] = Workspace(compressor=image_compressor)

    session["workspace_id"] = page_id
    return page_id


def requested_page_id() -> str:
    """Page id sent with the request, falling back to the session's last page."""
    return (
        request.headers.get(PAGE_HEADER)
        or request.args.get("page")
        or session.get("workspace_id", "")
    )


def current_workspace(create: bool = True) -> Optional[Workspace]:
    """
    Return the workspace of the requesting page.

    Args:
        create: Start a workspace when the page has none (e.g. it was evicted)

    Returns:
        The workspace, or None if there is none and create is False
    """
    cleanup_old_workspaces(current_app.config["SETTINGS"].workspace_ttl_seconds)

    page_id = requested_page_id()
    with workspaces_lock:
        workspace = workspaces.get(page_id) if page_id else None
        if workspace is None and create:
            page_id = page_id or str(uuid.uuid4())
            workspace = Workspace(compressor=image_compressor)
            workspaces[page_id] = workspace
        if workspace is not None:
            workspace.touch()

    if workspace is not None and not request.headers.get(PAGE_HEADER):
        session["workspace_id"] = page_id
    return workspace


def uploaded_source() -> Optional[SourceFile]:
    """Build a SourceFile from the request's ``file`` field."""
    file = request.files.get("file")
    if file is None or file.filename == "":
        return None
    return SourceFile(
        data=file.read(),
        mime_type=file.mimetype or "",
        filename=secure_filename(file.filename),
    )


def image_config_from_form() -> ProcessingConfig:
    """Build a fresh ProcessingConfig from the submitted controls."""
    return ProcessingConfig(
        max_size_mb=float(request.form.get("max_size_mb", DEFAULT_MAX_SIZE_MB)),
        max_width_or_height=int(request.form.get("max_width_or_height", DEFAULT_MAX_DIMENSION)),
        quality=float(request.form.get("quality", DEFAULT_QUALITY)),
    )


def intake_response(workspace: Workspace, mode: Mode, config: Optional[ProcessingConfig] = None):
    """Run intake for the uploaded file and shape the JSON reply."""
    source = uploaded_source()
    via = request.form.get("via", "picker")
    if via == "drop":
        outcome = workspace.intake.drop(mode, source, config)
    else:
        outcome = workspace.intake.pick(mode, source, config)

    if outcome.notice:
        logger.warning("Failed to process %s upload: %s", mode.value, outcome.notice.message)
        return jsonify({
            "error": outcome.notice.message,
            "notices": [outcome.notice.to_dict()],
        }), 422

    payload = outcome.to_dict()
    payload["notices"] = []
    return jsonify(payload)


def create_app(settings: Optional[Settings] = None) -> Flask:
    """Create the Flask application."""
    settings = settings or Settings.from_env()

    app = Flask(__name__)
    app.secret_key = os.urandom(24)
    CORS(app)

    app.config["MAX_CONTENT_LENGTH"] = settings.max_content_length
    app.config["SETTINGS"] = settings

    @app.route("/")
    def index():
        """Serve the main page. Each load gets its own, empty workspace."""
        page_id = open_page()
        return render_template(
            "index.html",
            page_id=page_id,
            active_tab=Mode.IMAGE.value,
            default_quality=DEFAULT_QUALITY,
        )

    @app.route("/api/state")
    def get_state():
        """Get the active tab, overlay and held results."""
        workspace = current_workspace(create=False)
        if workspace is None:
            return jsonify(AppState().to_dict())
        return jsonify(workspace.to_dict())

    @app.route("/api/tab", methods=["POST"])
    def switch_tab():
        """Switch the visible section."""
        data = request.get_json(silent=True)

        if not data or "tab" not in data:
            return jsonify({"error": "No tab provided"}), 400

        try:
            tab = current_workspace().switch_tab(data["tab"])
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        return jsonify({"active_tab": tab.value})

    @app.route("/api/image", methods=["POST"])
    def compress_image():
        """Compress an uploaded image."""
        try:
            config = image_config_from_form()
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        return intake_response(current_workspace(), Mode.IMAGE, config)

    @app.route("/api/document", methods=["POST"])
    def optimize_document():
        """Optimize an uploaded PDF."""
        return intake_response(current_workspace(), Mode.DOCUMENT)

    @app.route("/api/download/<category>")
    def download_file(category: str):
        """Download the held result for a category."""
        try:
            mode = Mode.parse(category)
        except ValueError as e:
            return jsonify({"error": str(e)}), 404

        responses = []

        def save_as(artifact: ExportArtifact):
            responses.append(send_file(
                io.BytesIO(artifact.handle.getvalue()),
                mimetype=artifact.mime_type,
                as_attachment=True,
                download_name=artifact.filename,
            ))

        workspace = current_workspace(create=False)
        if workspace is None or not workspace.exporter.export(mode, save_as):
            return jsonify({"error": "Nothing to download"}), 404

        return responses[0]

    return app


app = create_app()


if __name__ == "__main__":
    settings = app.config["SETTINGS"]
    configure_logging(settings.log_level)
    print("Starting Local File Compressor Web Server...")
    print(f"Open http://{settings.host}:{settings.port} in your browser")
    app.run(debug=True, host=settings.host, port=settings.port)
