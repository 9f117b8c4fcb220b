#!/usr/bin/env python3
"""
PixelTone API Server
Load an image into a session, apply grayscale/invert/sepia, read the console.
"""

import os
import logging
import uuid
from collections import OrderedDict
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, request, jsonify
from flask_cors import CORS
from werkzeug.utils import secure_filename

from .exceptions import DecodeFailure, NoImageLoaded, UnknownOperation
from .models.operation import Operation
from .services.image_service import ImageService
from .services.processing_session import ProcessingSession

logger = logging.getLogger(__name__)

# Configuration
UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "data/temp_uploads")
ALLOWED_EXTENSIONS = set(os.getenv("ALLOWED_EXTENSIONS", "png,jpg,jpeg,bmp,webp,tif,tiff").split(","))
MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_SIZE_MB", "100")) * 1024 * 1024
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "100"))


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def original_name(filename: str) -> str:
    """The uploaded file's own name, without any client-side directories."""
    return filename.replace('\\', '/').rsplit('/', 1)[-1]


def json_object() -> dict:
    """Request JSON body if it is an object, else an empty dict."""
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def create_app(upload_folder: str | Path = None, max_sessions: int = None) -> Flask:
    """Build the Flask app; each app owns its own session table."""
    app = Flask(__name__)
    CORS(app)  # Enable CORS for frontend communication

    app.config['UPLOAD_FOLDER'] = str(upload_folder or UPLOAD_FOLDER)
    app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH
    app.config['MAX_SESSIONS'] = max(1, max_sessions or MAX_SESSIONS)
    Path(app.config['UPLOAD_FOLDER']).mkdir(parents=True, exist_ok=True)

    image_service = ImageService()
    # Least recently used first; the oldest session is closed once the cap is hit.
    sessions: "OrderedDict[str, ProcessingSession]" = OrderedDict()
    app.extensions['pixeltone_sessions'] = sessions

    def create_session() -> ProcessingSession:
        """New session with a server-generated id, evicting the oldest if full."""
        while len(sessions) >= app.config['MAX_SESSIONS']:
            old_id, old = sessions.popitem(last=False)
            old.close()
            logger.info(f"Evicted session {old_id}")
        session = ProcessingSession(image_service=image_service)
        sessions[session.session_id] = session
        return session

    def lookup_session(session_id: Any) -> Optional[ProcessingSession]:
        if not isinstance(session_id, str) or not session_id:
            return None
        session = sessions.get(session_id)
        if session is not None:
            sessions.move_to_end(session_id)
        return session

    @app.route('/api/load-image', methods=['POST'])
    def load_image():
        """Decode an uploaded image into a session."""
        if 'image' not in request.files:
            return jsonify({'success': False, 'message': 'No image provided'}), 400

        file = request.files['image']
        if file.filename == '':
            return jsonify({'success': False, 'message': 'No file selected'}), 400
        if not allowed_file(file.filename):
            return jsonify({'success': False, 'message': f'Unsupported file type: {file.filename}'}), 400

        requested_id = request.form.get('session_id')
        if requested_id:
            session = lookup_session(requested_id)
            if session is None:
                return jsonify({'success': False, 'message': 'Invalid session'}), 400
        else:
            session = create_session()

        # Save uploaded file temporarily; the console shows the uploaded name
        display_name = original_name(file.filename)
        filename = secure_filename(file.filename) or "upload"
        temp_dir = Path(app.config['UPLOAD_FOLDER']) / uuid.uuid4().hex
        temp_dir.mkdir(parents=True, exist_ok=True)
        temp_path = temp_dir / filename

        try:
            file.save(str(temp_path))
            image = session.load(temp_path, display_name=display_name)
        except DecodeFailure as e:
            logger.warning(f"Upload could not be decoded: {e}")
            return jsonify({
                'success': False,
                'session_id': session.session_id,
                'message': 'Failed to load image file',
            }), 400
        finally:
            # Clean up temp file
            if temp_path.exists():
                temp_path.unlink()
            temp_dir.rmdir()

        height, width = image_service.get_image_dimensions(image)
        logger.info(f"Session {session.session_id}: loaded {display_name} ({width}x{height})")
        return jsonify({
            'success': True,
            'session_id': session.session_id,
            'width': int(width),
            'height': int(height),
            'message': f'Image loaded: {display_name}',
        })

    @app.route('/api/apply', methods=['POST'])
    def apply_operation():
        """Apply one operation to the session's loaded image."""
        payload = json_object()
        session = lookup_session(payload.get('session_id'))
        if session is None:
            return jsonify({'success': False, 'message': 'Invalid session'}), 400

        operation = payload.get('operation')
        if not isinstance(operation, str):
            return jsonify({'success': False, 'message': 'Operation must be a string',
                            'operations': Operation.names()}), 400

        try:
            result = session.apply(operation)
        except UnknownOperation as e:
            return jsonify({'success': False, 'message': str(e),
                            'operations': Operation.names()}), 400
        except NoImageLoaded as e:
            return jsonify({'success': False, 'message': str(e)}), 400

        height, width = image_service.get_image_dimensions(result)
        op = session.last_operation
        return jsonify({
            'success': True,
            'session_id': session.session_id,
            'operation': op.value,
            'image': image_service.to_base64(result),
            'width': int(width),
            'height': int(height),
            'message': f'Image processed: {op.label}',
        })

    @app.route('/api/console', methods=['GET'])
    def console():
        """Return the session's console lines, oldest first."""
        session = lookup_session(request.args.get('session_id'))
        if session is None:
            return jsonify({'success': False, 'message': 'Invalid session'}), 400
        return jsonify({'session_id': session.session_id, 'lines': session.console_lines()})

    @app.route('/api/operations', methods=['GET'])
    def operations():
        return jsonify({'operations': [{'name': op.value, 'label': op.label} for op in Operation]})

    @app.route('/api/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        return jsonify({
            'status': 'healthy',
            'message': 'PixelTone API is running',
            'active_sessions': len(sessions)
        })

    @app.route('/api/clear-session', methods=['POST'])
    def clear_session():
        """Clear a session and free memory."""
        session_id = json_object().get('session_id')
        session = sessions.pop(session_id, None) if isinstance(session_id, str) else None
        if session is None:
            return jsonify({'success': False, 'message': 'Session not found'})
        session.close()
        return jsonify({'success': True, 'message': 'Session cleared'})

    @app.errorhandler(413)
    def too_large(e):
        """Handle file too large error."""
        limit_mb = app.config['MAX_CONTENT_LENGTH'] // (1024 * 1024)
        return jsonify({'error': f'File too large. Maximum size is {limit_mb}MB.'}), 413

    @app.errorhandler(500)
    def internal_error(e):
        """Handle internal server error."""
        logger.error(f"Internal server error: {e}")
        return jsonify({'error': 'Internal server error'}), 500

    return app


def main() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )
    host = os.getenv("API_HOST", "127.0.0.1")
    port = int(os.getenv("API_PORT", "5000"))

    logger.info("Starting PixelTone API Server...")
    logger.info(f"Upload directory: {UPLOAD_FOLDER}")
    logger.info(f"Max upload size: {MAX_CONTENT_LENGTH // (1024*1024)}MB")
    logger.info(f"Operations: {', '.join(Operation.names())}")

    create_app().run(host=host, port=port, debug=False)


if __name__ == '__main__':
    main()
