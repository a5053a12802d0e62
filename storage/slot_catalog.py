"""Slot catalog backed by the parking_slots table."""

import logging
from typing import Iterable, List

import yaml

from occupancy.parking_slot import ParkingSlot
from storage.models import ParkingLot, ParkingSlotRecord
from utils.errors import EmptyCatalogError


logger = logging.getLogger(__name__)


class SlotCatalog:
    """Reads and writes the slot rectangles of each parking lot.
    
    Attributes:
        session_factory: SQLAlchemy sessionmaker bound to the database
    """
    
    def __init__(self, session_factory):
        self.session_factory = session_factory
    
    def get_parking_slots(self, parking_lot_id: int) -> List[ParkingSlot]:
        """Load the slots of a parking lot in catalog order.
        
        Args:
            parking_lot_id: Lot identifier
            
        Returns:
            List of ParkingSlot in original image coordinates
            
        Raises:
            EmptyCatalogError: If the lot is unknown or has no slots
        """
        with self.session_factory() as session:
            rows = (
                session.query(ParkingSlotRecord)
                .filter(ParkingSlotRecord.parking_lot_id == parking_lot_id)
                .order_by(ParkingSlotRecord.id)
                .all()
            )
            slots = [
                ParkingSlot.from_config({
                    'label': row.label,
                    'x1': row.x1, 'y1': row.y1, 'x2': row.x2, 'y2': row.y2
                })
                for row in rows
            ]
        
        if not slots:
            raise EmptyCatalogError(parking_lot_id)
        
        return slots
    
    def replace_slots(self, parking_lot_id: int, slots: Iterable[ParkingSlot],
                      name: str = None) -> int:
        """Replace the whole catalog of a parking lot.
        
        Args:
            parking_lot_id: Lot identifier (created if missing)
            slots: Slots in the desired catalog order
            name: Optional lot name
            
        Returns:
            Number of slots stored
        """
        with self.session_factory() as session:
            with session.begin():
                lot = session.get(ParkingLot, parking_lot_id)
                if lot is None:
                    lot = ParkingLot(id=parking_lot_id, name=name)
                    session.add(lot)
                elif name:
                    lot.name = name
                
                session.query(ParkingSlotRecord).filter(
                    ParkingSlotRecord.parking_lot_id == parking_lot_id
                ).delete()
                
                count = 0
                for slot in slots:
                    session.add(ParkingSlotRecord(
                        parking_lot_id=parking_lot_id,
                        label=slot.label,
                        x1=slot.box.x1, y1=slot.box.y1,
                        x2=slot.box.x2, y2=slot.box.y2
                    ))
                    count += 1
        
        logger.info("Stored %d slots for parking lot %s", count, parking_lot_id)
        return count
    
    def seed_from_yaml(self, path: str) -> int:
        """Load slot catalogs from a YAML file.
        
        Expected layout::
        
            parking_lots:
              - id: 1
                name: North lot
                slots:
                  - {label: "1", x1: 10, y1: 20, x2: 110, y2: 220}
        
        Args:
            path: Path to the YAML file
            
        Returns:
            Total number of slots stored
        """
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
        
        total = 0
        for lot in data.get('parking_lots', []):
            slots = [ParkingSlot.from_config(slot) for slot in lot.get('slots', [])]
            total += self.replace_slots(int(lot['id']), slots, name=lot.get('name'))
        
        return total
