"""Exception types raised by the occupancy pipeline."""


class ParkingOccupancyError(Exception):
    """Base class for errors surfaced to the caller as a failed response.
    
    Attributes:
        status_code: HTTP status used when the error reaches the API boundary
    """
    status_code = 500


class InvalidImageError(ParkingOccupancyError):
    """Image could not be read or has non-positive dimensions."""
    status_code = 400


class EmptyCatalogError(ParkingOccupancyError):
    """No parking slots are defined for the requested lot."""
    status_code = 404
    
    def __init__(self, parking_lot_id):
        super().__init__(f"No parking slots found for parking lot {parking_lot_id}")
        self.parking_lot_id = parking_lot_id


class ModelUnavailableError(ParkingOccupancyError):
    """Detector is not loaded, or the remote inference call failed or timed out."""
    status_code = 503


class MalformedDetectionOutputError(ParkingOccupancyError):
    """Detector response does not have the expected shape."""
    status_code = 502
