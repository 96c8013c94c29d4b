import argparse
import logging
import os

from flask import Flask, abort, jsonify, request, send_file, send_from_directory
from werkzeug.exceptions import HTTPException

from file_registry import FileRegistry, MissingInput, RegistryError

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", os.path.join(BASE_DIR, "uploads"))
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3000"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

logger = logging.getLogger(__name__)

registry = FileRegistry(UPLOAD_FOLDER)
registry.ensure_directory()

app = Flask(__name__, static_folder=os.path.join(BASE_DIR, "static"))
app.config['MAX_CONTENT_LENGTH'] = int(
    os.environ.get("MAX_CONTENT_LENGTH", 4 * 1024 * 1024 * 1024)
)  # 4GB limit


@app.errorhandler(RegistryError)
def handle_registry_error(error):
    return jsonify({"error": error.message}), error.status_code


@app.errorhandler(HTTPException)
def handle_http_error(error):
    if not request.path.startswith("/api/"):
        return error
    return jsonify({"error": error.description}), error.code


@app.route("/api/upload", methods=["POST"])
def upload():
    if 'file' not in request.files:
        logger.warning("upload_failed reason=no_file_part")
        raise MissingInput()
    f = request.files['file']
    if not f.filename:
        logger.warning("upload_failed reason=no_file_selected")
        raise MissingInput()
    filename = registry.upload(f.filename, f.stream)
    logger.info("file_uploaded filename=%s", filename)
    return jsonify({"message": "File uploaded successfully", "filename": filename})


@app.route("/api/files", methods=["GET"])
def list_files():
    return jsonify(registry.list_files())


@app.route("/api/download/<filename>", methods=["GET"])
def download(filename):
    stream = registry.download(filename)
    logger.info("file_downloaded filename=%s", filename)
    response = send_file(stream, as_attachment=True, download_name=filename)
    response.content_length = os.fstat(stream.fileno()).st_size
    return response


@app.route("/api/files/<filename>", methods=["DELETE"])
def delete(filename):
    registry.delete(filename)
    logger.info("file_deleted filename=%s", filename)
    return jsonify({"message": "File deleted successfully"})


@app.route("/", defaults={"path": ""})
@app.route("/<path:path>")
def index(path):
    # unknown API routes must not fall through to the page
    if path == "api" or path.startswith("api/"):
        abort(404)
    return send_from_directory(app.static_folder, "index.html")


def main():
    """CLI entry point."""
    global registry

    parser = argparse.ArgumentParser(description="SimpleBox file server")
    parser.add_argument("--host", default=HOST, help="Host to bind to")
    parser.add_argument("--port", type=int, default=PORT, help="Port to bind to")
    parser.add_argument("--upload-folder", default=UPLOAD_FOLDER, help="Storage directory")
    parser.add_argument("--debug", action="store_true", help="Run Flask in debug mode")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.upload_folder != registry.directory:
        registry = FileRegistry(args.upload_folder)
        registry.ensure_directory()

    logger.info("Server running on http://localhost:%d", args.port)
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    # run with: python file_server.py
    # accessible on LAN at http://0.0.0.0:3000
    main()
