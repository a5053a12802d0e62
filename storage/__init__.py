"""Storage module: slot catalogs and detection history."""

from storage.models import create_session_factory
from storage.slot_catalog import SlotCatalog
from storage.detection_log import DetectionLog

__all__ = ['create_session_factory', 'SlotCatalog', 'DetectionLog']
