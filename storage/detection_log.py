"""Best-effort history of occupancy results."""

import json
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from storage.models import DetectionLogRecord
from utils.report import OccupancyResult


logger = logging.getLogger(__name__)


class DetectionLog:
    """Persists occupancy results without ever failing the caller.
    
    ``notify`` hands the write to a background worker; ``record`` performs it
    in the calling thread. Failures in both are logged and dropped.
    
    Attributes:
        session_factory: SQLAlchemy sessionmaker bound to the database
        background: Whether ``notify`` writes on a worker thread
    """
    
    def __init__(self, session_factory, background: bool = True):
        self.session_factory = session_factory
        self.background = background
        self._executor = None
        if background:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='detection-log')
    
    def notify(self, parking_lot_id: int, result: OccupancyResult,
               source_image: Optional[str] = None) -> Future:
        """Hand off a log write and return immediately.
        
        Returns:
            Future resolving to the ``record`` outcome
        """
        future = Future()

        if self._executor is not None:
            try:
                return self._executor.submit(self.record, parking_lot_id, result, source_image)
            except RuntimeError as e:
                # Executor already shut down
                logger.warning("Dropped detection log entry for parking lot %s: %s", parking_lot_id, e)
                future.set_result(False)
                return future

        future.set_result(self.record(parking_lot_id, result, source_image))
        return future
    
    def record(self, parking_lot_id: int, result: OccupancyResult,
               source_image: Optional[str] = None) -> bool:
        """Write one log entry.
        
        Args:
            parking_lot_id: Lot the result belongs to
            result: Occupancy result to persist
            source_image: Optional reference to the processed image
            
        Returns:
            True if the entry was stored, False if the write failed
        """
        try:
            with self.session_factory() as session:
                with session.begin():
                    session.add(DetectionLogRecord(
                        parking_lot_id=parking_lot_id,
                        occupied_labels=json.dumps(list(result.occupied)),
                        occupied_count=len(result.occupied),
                        source_image=source_image
                    ))
        except SQLAlchemyError as e:
            logger.warning("Failed to log detection for parking lot %s: %s", parking_lot_id, e)
            return False
        except Exception:
            logger.exception("Unexpected error logging detection for parking lot %s", parking_lot_id)
            return False
        
        return True
    
    def recent(self, parking_lot_id: int, limit: int = 20) -> List[Dict]:
        """Most recent log entries for a lot, newest first."""
        with self.session_factory() as session:
            rows = (
                session.query(DetectionLogRecord)
                .filter(DetectionLogRecord.parking_lot_id == parking_lot_id)
                .order_by(DetectionLogRecord.id.desc())
                .limit(limit)
                .all()
            )
            return [
                {
                    'id': row.id,
                    'parkingLotId': row.parking_lot_id,
                    'occupied': json.loads(row.occupied_labels),
                    'occupiedCount': row.occupied_count,
                    'sourceImage': row.source_image,
                    'timestamp': row.created_at.isoformat() if row.created_at else None
                }
                for row in rows
            ]
    
    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
