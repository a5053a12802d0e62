"""HTTP API for parking occupancy detection (Flask)."""

import logging
from typing import Dict

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from parking_occupancy_app import ParkingOccupancyApp, decode_image
from utils.errors import InvalidImageError, ParkingOccupancyError


logger = logging.getLogger(__name__)


def _error(message: str, status: int):
    return jsonify({'success': False, 'error': message}), status


def create_app(occupancy_app: ParkingOccupancyApp, config: Dict = None) -> Flask:
    """Create the Flask application around an occupancy pipeline.
    
    Args:
        occupancy_app: Configured ParkingOccupancyApp
        config: Configuration dictionary (defaults to the pipeline's)
        
    Returns:
        Flask application
    """
    config = config if config is not None else occupancy_app.config
    server_config = config.get('server', {})
    default_lot_id = int(server_config.get('default_parking_lot_id', 1))
    
    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = int(server_config.get('max_upload_mb', 16)) * 1024 * 1024
    
    def parking_lot_id_arg() -> int:
        value = request.args.get('parkingLotId', '')
        try:
            return int(value) if value else default_lot_id
        except ValueError:
            return default_lot_id
    
    @app.errorhandler(ParkingOccupancyError)
    def handle_occupancy_error(error):
        logger.warning("Request failed: %s", error)
        return _error(str(error), error.status_code)
    
    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return _error(error.description, error.code)
    
    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception("Unexpected error")
        return _error("Internal server error", 500)
    
    @app.route('/health', methods=['GET'])
    def health():
        ready = bool(getattr(occupancy_app.detector, 'ready', True))
        return jsonify({'status': 'ok' if ready else 'degraded', 'modelReady': ready})
    
    @app.route('/api/detect', methods=['POST'])
    def detect():
        upload = request.files.get('image') or request.files.get('file')
        if upload is None:
            raise InvalidImageError("No file uploaded")
        
        parking_lot_id = parking_lot_id_arg()
        image = decode_image(upload.read())
        
        result, _ = occupancy_app.detect_image(image, parking_lot_id, source_image=upload.filename)
        return jsonify(result.to_dict())
    
    @app.route('/api/parking-lots/<int:parking_lot_id>/slots', methods=['GET'])
    def parking_slots(parking_lot_id):
        slots = occupancy_app.catalog.get_parking_slots(parking_lot_id)
        return jsonify({
            'success': True,
            'parkingLotId': parking_lot_id,
            'slots': [slot.to_dict() for slot in slots]
        })
    
    @app.route('/api/parking-lots/<int:parking_lot_id>/history', methods=['GET'])
    def detection_history(parking_lot_id):
        if occupancy_app.detection_log is None:
            return _error("Detection history is disabled", 404)
        limit = request.args.get('limit', 20, type=int)
        limit = max(1, min(limit, 500))
        return jsonify({
            'success': True,
            'parkingLotId': parking_lot_id,
            'history': occupancy_app.detection_log.recent(parking_lot_id, limit)
        })
    
    return app
